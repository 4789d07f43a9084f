"""Exceptions raised by the service layer.

Routes translate these into HTTP responses: ``NotFoundError`` → 404,
``AuthenticationError`` → 401, ``PermissionDeniedError`` → 403,
``DomainConflictError`` → 400, ``DuplicateRecordError`` → 409 and the
internal errors → 500.
"""
from __future__ import annotations


class FuelServiceError(RuntimeError):
    """Base exception for service errors."""


class AuthenticationError(FuelServiceError):
    """Raised when credentials do not match a known account."""


class NotFoundError(FuelServiceError):
    """Raised when a referenced entity does not exist or is out of scope."""


class PermissionDeniedError(FuelServiceError):
    """Raised when the principal lacks the permission an operation needs."""


class DomainConflictError(FuelServiceError):
    """Raised when a request conflicts with the current state of the data."""


class InvalidStateTransitionError(DomainConflictError):
    """Raised when a status change is not allowed from the current status."""


class CouponNotRedeemableError(DomainConflictError):
    """Raised when a coupon code is unknown, already used, expired or deactivated."""


class InsufficientBalanceError(DomainConflictError):
    """Raised when a debit exceeds the available balance."""


class LimitExceededError(DomainConflictError):
    """Raised when a purchase or transfer would exceed a transaction limit."""


class ConcurrentUpdateError(DomainConflictError):
    """Raised when optimistic locking detects a concurrent update."""


class DuplicateRecordError(FuelServiceError):
    """Raised when a unique constraint rejects a new record."""


class CouponCodeGenerationError(FuelServiceError):
    """Raised when no unused coupon code was found within the attempt budget."""


class ReconciliationError(FuelServiceError):
    """Raised when a multi-step write failed part way and was rolled back."""


__all__ = [
    "AuthenticationError",
    "ConcurrentUpdateError",
    "CouponCodeGenerationError",
    "CouponNotRedeemableError",
    "DomainConflictError",
    "DuplicateRecordError",
    "FuelServiceError",
    "InsufficientBalanceError",
    "InvalidStateTransitionError",
    "LimitExceededError",
    "NotFoundError",
    "PermissionDeniedError",
    "ReconciliationError",
]
