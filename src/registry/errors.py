"""Typed failures raised by the claim registry."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(Enum):
    """Enumeration of registry failure kinds."""

    INVALID_AMOUNT = "InvalidAmount"
    CLAIM_NOT_FOUND = "ClaimNotFound"
    STATUS_ALREADY_SET = "StatusAlreadySet"
    INVALID_STATUS = "InvalidStatus"
    UNAUTHORIZED = "Unauthorized"
    INVALID_OWNER = "InvalidOwner"


class RegistryError(Exception):
    """
    Base exception for all registry failures.

    Every failure is raised before any state is written, so catching one
    means the registry is unchanged.

    Attributes:
        error_type: Kind of failure from ErrorType
        message: Human-readable message
        details: Extra context (never contains raw customer identifiers)
    """

    error_type: ErrorType
    http_status: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.error_type.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidAmount(RegistryError):
    """Claim amount is zero or not an unsigned 256-bit integer."""

    error_type = ErrorType.INVALID_AMOUNT

    @classmethod
    def for_amount(cls, amount: Any) -> "InvalidAmount":
        return cls(
            "Claim amount must be a positive 256-bit integer",
            details={"amount": str(amount)},
        )


class ClaimNotFound(RegistryError):
    """No claim has been created under the identifier."""

    error_type = ErrorType.CLAIM_NOT_FOUND
    http_status = 404

    @classmethod
    def for_id(cls, claim_id: Any) -> "ClaimNotFound":
        return cls(f"Claim {claim_id} does not exist", details={"claim_id": str(claim_id)})


class StatusAlreadySet(RegistryError):
    """
    Requested status equals the current one, or the claim is already final.

    Approved and Rejected are terminal: any further update is reported with
    this error even when the requested status differs.
    """

    error_type = ErrorType.STATUS_ALREADY_SET
    http_status = 409

    @classmethod
    def for_transition(cls, claim_id: int, current, requested) -> "StatusAlreadySet":
        return cls(
            f"Claim {claim_id} is already {current.label}; cannot set {requested.label}",
            details={
                "claim_id": str(claim_id),
                "current_status": current.label,
                "requested_status": requested.label,
            },
        )


class InvalidStatus(RegistryError):
    """Status value is outside Submitted/Approved/Rejected."""

    error_type = ErrorType.INVALID_STATUS

    @classmethod
    def for_value(cls, value: Any) -> "InvalidStatus":
        return cls(f"Unknown claim status: {value!r}", details={"status": str(value)})


class Unauthorized(RegistryError):
    """Caller is not the current owner."""

    error_type = ErrorType.UNAUTHORIZED
    http_status = 403

    @classmethod
    def for_caller(cls, caller: Optional[str], operation: str) -> "Unauthorized":
        return cls(
            f"Caller {caller!r} is not allowed to {operation}",
            details={"caller": caller, "operation": operation},
        )


class InvalidOwner(RegistryError):
    """Ownership cannot be transferred to an empty identity."""

    error_type = ErrorType.INVALID_OWNER

    @classmethod
    def for_owner(cls, new_owner: Any) -> "InvalidOwner":
        return cls(
            "New owner must be a non-empty identity (use renounce to drop ownership)",
            details={"new_owner": new_owner},
        )
