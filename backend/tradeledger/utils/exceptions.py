"""
Heights Ledger - Custom Exceptions
Ledger exceptions with HTTP error mapping
"""
from typing import Optional, Any, Dict
from fastapi import status


class LedgerException(Exception):
    """Base exception for Heights Ledger."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str = "An error occurred",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# =========================
# Input Exceptions
# =========================

class InvalidInputError(LedgerException):
    """Request is malformed: non-positive quantity or price, unknown asset type."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_INPUT", details=details)


class NotFoundError(LedgerException):
    """Requested record does not exist for this user."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message=message, code="NOT_FOUND")


# =========================
# Business Rule Exceptions
# =========================

class InsufficientFundsError(LedgerException):
    """Available cash does not cover the trade."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Insufficient funds", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INSUFFICIENT_FUNDS", details=details)


class InsufficientHoldingsError(LedgerException):
    """Held quantity does not cover the sell."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Insufficient holdings", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INSUFFICIENT_HOLDINGS", details=details)


# =========================
# Persistence Exceptions
# =========================

class ConflictError(LedgerException):
    """Lost a concurrency race; the whole settlement may be retried."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Concurrent modification, retry the settlement"):
        super().__init__(message=message, code="CONFLICT")


class PersistenceFailureError(LedgerException):
    """Storage layer failed during the atomic write."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Persistence failure"):
        super().__init__(message=message, code="PERSISTENCE_FAILURE")


class InvariantViolationError(LedgerException):
    """Internal contract broken (over-sell reaching the updater, completed trade mutated)."""

    def __init__(self, message: str = "Ledger invariant violated"):
        super().__init__(message=message, code="INVARIANT_VIOLATION")


# =========================
# Authentication Exceptions
# =========================

class AuthenticationError(LedgerException):
    """Bearer token missing, expired or invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message=message, code="INVALID_TOKEN")

