"""
Claim registry module.

Sequential claim records with hashed customer identity and an owner-gated
status lifecycle.
"""

from .claim_registry import ClaimRegistry, EventListener
from .errors import (
    ClaimNotFound,
    ErrorType,
    InvalidAmount,
    InvalidOwner,
    InvalidStatus,
    RegistryError,
    StatusAlreadySet,
    Unauthorized,
)
from .hashing import hash_customer_id
from .schema import (
    # Enums
    ClaimStatus,
    # Models
    Claim,
    RegistryState,
    # Notifications
    RegistryEvent,
    ClaimSubmitted,
    ClaimStatusUpdated,
    ClaimProcessed,
    OwnershipTransferred,
    status_label,
)
from .serializer import claim_to_dict, serialize_claim, serialize_claims

__all__ = [
    # Registry
    "ClaimRegistry",
    "EventListener",
    # Errors
    "RegistryError",
    "ErrorType",
    "InvalidAmount",
    "ClaimNotFound",
    "StatusAlreadySet",
    "InvalidStatus",
    "Unauthorized",
    "InvalidOwner",
    # Helpers
    "hash_customer_id",
    "status_label",
    "claim_to_dict",
    "serialize_claim",
    "serialize_claims",
    # Enums
    "ClaimStatus",
    # Models
    "Claim",
    "RegistryState",
    # Notifications
    "RegistryEvent",
    "ClaimSubmitted",
    "ClaimStatusUpdated",
    "ClaimProcessed",
    "OwnershipTransferred",
]
