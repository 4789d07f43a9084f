"""ORM models package."""
from .admin_role import DEFAULT_ROLE_PERMISSIONS, AdminPermission, AdminRole, AdminRoleName
from .audit_log import AuditLog
from .base import Base, TimestampMixin
from .company import Company, Driver, DriverStatus, FleetManager, FleetManagerRole
from .coupon import Coupon, CouponStatus
from .fuel_balance import FuelBalance, FuelType
from .merchant import (
    EmployeeStatus,
    Merchant,
    MerchantEmployee,
    MerchantStatus,
    WithdrawalRequest,
    WithdrawalStatus,
)
from .transaction import PaymentMethod, Transaction, TransactionLimit, TransactionStatus, TransactionType
from .user import User, UserStatus, UserType
from .vehicle import DocumentType, Vehicle, VehicleDocument, VehicleFuelType, VehicleStatus, VehicleType

__all__ = [
    "AdminPermission",
    "AdminRole",
    "AdminRoleName",
    "AuditLog",
    "Base",
    "Company",
    "Coupon",
    "CouponStatus",
    "DEFAULT_ROLE_PERMISSIONS",
    "DocumentType",
    "Driver",
    "DriverStatus",
    "EmployeeStatus",
    "FleetManager",
    "FleetManagerRole",
    "FuelBalance",
    "FuelType",
    "Merchant",
    "MerchantEmployee",
    "MerchantStatus",
    "PaymentMethod",
    "TimestampMixin",
    "Transaction",
    "TransactionLimit",
    "TransactionStatus",
    "TransactionType",
    "User",
    "UserStatus",
    "UserType",
    "Vehicle",
    "VehicleDocument",
    "VehicleFuelType",
    "VehicleStatus",
    "VehicleType",
]
