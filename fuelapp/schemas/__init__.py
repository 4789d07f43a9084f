"""Pydantic schemas package."""

from .auth import (
    AdminRoleAssign,
    AdminRoleRead,
    AuthStatusRead,
    CurrentUserRead,
    LoginRequest,
    ProfileUpdate,
    RefreshRequest,
    TokenResponse,
    UserRead,
    UserStatusUpdate,
)
from .balance import FuelBalancesRead, TransactionLimitsRead, TransactionLimitsUpdate
from .base import ApiModel, Money
from .company import (
    CompanyCreate,
    CompanyRead,
    DriverCreate,
    DriverRead,
    FleetManagerRead,
    FleetRead,
    ManagerCreate,
)
from .coupon import CouponCreate, CouponRead, CouponRedeemRequest
from .merchant import (
    EmployeeCreate,
    EmployeeRead,
    MerchantCreate,
    MerchantRead,
    WithdrawalCreate,
    WithdrawalProcess,
    WithdrawalRead,
)
from .stats import SystemStatsRead
from .transaction import (
    FuelPurchaseRequest,
    TopUpRequest,
    TransactionCreate,
    TransactionRead,
    TransactionStatusUpdate,
    TransferRead,
    TransferRequest,
)
from .vehicle import (
    VehicleCreate,
    VehicleDocumentCreate,
    VehicleDocumentRead,
    VehicleRead,
    VehicleRejectRequest,
)

__all__ = [
    "AdminRoleAssign",
    "AdminRoleRead",
    "ApiModel",
    "AuthStatusRead",
    "CompanyCreate",
    "CompanyRead",
    "CouponCreate",
    "CouponRead",
    "CouponRedeemRequest",
    "CurrentUserRead",
    "DriverCreate",
    "DriverRead",
    "EmployeeCreate",
    "EmployeeRead",
    "FleetManagerRead",
    "FleetRead",
    "FuelBalancesRead",
    "FuelPurchaseRequest",
    "LoginRequest",
    "ManagerCreate",
    "MerchantCreate",
    "MerchantRead",
    "Money",
    "ProfileUpdate",
    "RefreshRequest",
    "SystemStatsRead",
    "TokenResponse",
    "TopUpRequest",
    "TransactionCreate",
    "TransactionLimitsRead",
    "TransactionLimitsUpdate",
    "TransactionRead",
    "TransactionStatusUpdate",
    "TransferRead",
    "TransferRequest",
    "UserRead",
    "UserStatusUpdate",
    "VehicleCreate",
    "VehicleDocumentCreate",
    "VehicleDocumentRead",
    "VehicleRead",
    "VehicleRejectRequest",
    "WithdrawalCreate",
    "WithdrawalProcess",
    "WithdrawalRead",
]
