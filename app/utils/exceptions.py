"""
Exception handling utilities.

Defines the domain error hierarchy and categorizes errors by handling
strategy.
"""

from typing import Any


class ErrorCode:
    """Stable numeric error codes (wire representation)."""

    NOT_FOUND = 1001
    INTERNAL_ERROR = 1002
    INVALID_PARAMS = 1005
    CONFLICT = 1006
    INTEGRITY = 1007

    USER_NOT_FOUND = 2001
    INVALID_INVITE_CODE = 2003
    INVITE_CODE_ALREADY_USED = 2004
    INVALID_INVITE_RELATION = 2005
    INVITE_CODE_EXPIRED = 2006

    ORDER_NOT_FOUND = 3001
    ORDER_MAX_COUNT_REACHED = 3002
    ORDER_STATUS_INVALID = 3003
    ORDER_MISSING_TRANSACTION_ID = 3005

    PRODUCT_NOT_FOUND = 4001


class DomainError(Exception):
    """Base class for errors raised by the core services."""

    code: int = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str | None = None, **context: Any) -> None:
        """
        Initialize error.

        Args:
            message: Human readable message (defaults to the class docstring)
            **context: Identifiers useful for logging (order_id, code, ...)
        """
        self.message = message or (self.__doc__ or type(self).__name__).strip()
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for API responses and job results."""
        return {
            "code": self.code,
            "error": type(self).__name__,
            "message": self.message,
            **self.context,
        }


# --- Validation ---------------------------------------------------------------


class ValidationError(DomainError):
    """Malformed input."""

    code = ErrorCode.INVALID_PARAMS


class SelfReferralError(ValidationError):
    """A user cannot invite themselves."""

    code = ErrorCode.INVALID_INVITE_RELATION


class InviteCodeExpiredError(ValidationError):
    """Invite code expired."""

    code = ErrorCode.INVITE_CODE_EXPIRED


# --- Not found ----------------------------------------------------------------


class NotFoundError(DomainError):
    """Requested entity does not exist."""

    code = ErrorCode.NOT_FOUND


class UserNotFoundError(NotFoundError):
    """User not found."""

    code = ErrorCode.USER_NOT_FOUND


class UnknownInviterError(NotFoundError):
    """Inviter is not part of the referral graph."""

    code = ErrorCode.INVALID_INVITE_RELATION


class InviteCodeNotFoundError(NotFoundError):
    """Invalid invite code."""

    code = ErrorCode.INVALID_INVITE_CODE


class OrderNotFoundError(NotFoundError):
    """Order not found."""

    code = ErrorCode.ORDER_NOT_FOUND


class ProductNotFoundError(NotFoundError):
    """Product not found or inactive."""

    code = ErrorCode.PRODUCT_NOT_FOUND


# --- Conflict -----------------------------------------------------------------


class ConflictError(DomainError):
    """State changed concurrently; re-read before retrying."""

    code = ErrorCode.CONFLICT


class AlreadyUsedError(ConflictError):
    """Invite code already used."""

    code = ErrorCode.INVITE_CODE_ALREADY_USED


class AlreadyJoinedError(ConflictError):
    """User already belongs to the referral graph."""

    code = ErrorCode.INVALID_INVITE_RELATION


class OrderLimitReachedError(ConflictError):
    """Maximum number of open orders reached for this product."""

    code = ErrorCode.ORDER_MAX_COUNT_REACHED


# --- State machine ------------------------------------------------------------


class InvalidTransitionError(DomainError):
    """Illegal status change."""

    code = ErrorCode.ORDER_STATUS_INVALID


# --- Integrity ----------------------------------------------------------------


class IntegrityError(DomainError):
    """Required data missing for an operation (contract violation)."""

    code = ErrorCode.INTEGRITY


class MissingTransactionIdError(IntegrityError):
    """Paid transition requires a non-empty transaction id."""

    code = ErrorCode.ORDER_MISSING_TRANSACTION_ID


# Exception categories based on handling strategy

# Surfaced directly to the caller
CALLER_ERRORS = (
    ValidationError,
    NotFoundError,
)

# Expected under concurrency - caller re-reads state instead of retrying
CONCURRENCY_ERRORS = (
    ConflictError,
    InvalidTransitionError,
)

# Programmer / contract violations - log loudly
FATAL_ERRORS = (
    IntegrityError,
)


def is_caller_error(exc: Exception) -> bool:
    """
    Check if exception should be reported back to the caller as-is.

    Args:
        exc: Exception to check

    Returns:
        True for validation and not-found errors
    """
    return isinstance(exc, CALLER_ERRORS)


def is_expected_under_concurrency(exc: Exception) -> bool:
    """
    Check if exception is a normal outcome of racing writers.

    Args:
        exc: Exception to check

    Returns:
        True for conflicts and invalid transitions
    """
    return isinstance(exc, CONCURRENCY_ERRORS)


def is_fatal(exc: Exception) -> bool:
    """
    Check if exception signals a contract violation.

    Args:
        exc: Exception to check

    Returns:
        True for integrity errors
    """
    return isinstance(exc, FATAL_ERRORS)
