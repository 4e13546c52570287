"""
Claim registry schema.

Defines the claim record, its status space, and the notifications the
registry emits on every state change.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .errors import InvalidStatus


UINT256_MAX = 2**256 - 1

HASH_PATTERN = r"^0x[0-9a-f]{64}$"


# ============================================================================
# Enums
# ============================================================================


class ClaimStatus(int, Enum):
    """Lifecycle status of a claim. Approved and Rejected are terminal."""
    SUBMITTED = 0
    APPROVED = 1
    REJECTED = 2

    @property
    def label(self) -> str:
        """Symbolic name used in text output (e.g. 'Approved')."""
        return self.name.capitalize()

    @property
    def is_terminal(self) -> bool:
        return self in (ClaimStatus.APPROVED, ClaimStatus.REJECTED)

    @classmethod
    def parse(cls, value: Any) -> "ClaimStatus":
        """
        Coerce a member, numeric code, or symbolic name into a ClaimStatus.

        Raises:
            InvalidStatus: if the value names no status
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidStatus.for_value(value)
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidStatus.for_value(value) from None
        if isinstance(value, str):
            text = value.strip()
            # isdigit alone also accepts non-ASCII digits such as "²"
            if text.isascii() and text.isdigit():
                return cls.parse(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise InvalidStatus.for_value(value) from None
        raise InvalidStatus.for_value(value)


def status_label(code: Any) -> str:
    """Symbolic name for a status code, 'Unknown' for anything else."""
    try:
        return ClaimStatus(int(code)).label
    except (TypeError, ValueError):
        return "Unknown"


# ============================================================================
# Claim Record
# ============================================================================


class Claim(BaseModel):
    """
    A single claim as held by the registry.

    Only the hash of the customer identifier is kept; the raw value never
    reaches the store.
    """

    model_config = ConfigDict(frozen=True)

    claim_id: int = Field(ge=1, description="Registry-assigned sequential identifier")
    customer_id_hash: str = Field(pattern=HASH_PATTERN, description="0x-prefixed 256-bit customer digest")
    amount: int = Field(description="Claimed amount, 0 < amount < 2**256, immutable")
    claim_date: int = Field(ge=0, description="Unix timestamp (seconds) of submission")
    status: ClaimStatus = Field(default=ClaimStatus.SUBMITTED, description="Current status")

    @field_validator("amount", mode="before")
    @classmethod
    def reject_non_integer_amount(cls, v: Any) -> Any:
        """Refuse floats and bools so amounts are never silently truncated."""
        if isinstance(v, (bool, float)):
            raise ValueError("amount must be an integer")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount_range(cls, v: int) -> int:
        """Amount must fit an unsigned 256-bit integer and be non-zero."""
        if not 0 < v <= UINT256_MAX:
            raise ValueError("amount must be between 1 and 2**256 - 1")
        return v

    def with_status(self, status: ClaimStatus) -> "Claim":
        """Return a copy of this claim carrying a new status."""
        return self.model_copy(update={"status": status})

    def as_tuple(self) -> tuple[str, int, int, ClaimStatus]:
        """(customer_id_hash, amount, claim_date, status)."""
        return self.customer_id_hash, self.amount, self.claim_date, self.status


@dataclass
class RegistryState:
    """Registry bookkeeping persisted next to the claims."""
    next_claim_id: int = 1
    owner: Optional[str] = None


# ============================================================================
# Notifications
# ============================================================================


class RegistryEvent(BaseModel):
    """Base class for notifications emitted by the registry."""

    model_config = ConfigDict(frozen=True)

    @property
    def event_name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        """JSON-friendly dict with the event name under 'event'."""
        return {"event": self.event_name, **self.model_dump(mode="json")}


class ClaimSubmitted(RegistryEvent):
    claim_id: int
    customer_id_hash: str
    amount: int
    timestamp: int
    submitter: str

    @field_serializer("amount")
    def serialize_amount(self, v: int) -> str:
        return str(v)


class ClaimStatusUpdated(RegistryEvent):
    claim_id: int
    old_status: ClaimStatus
    new_status: ClaimStatus
    timestamp: int
    updater: str

    @field_serializer("old_status", "new_status")
    def serialize_status(self, v: ClaimStatus) -> str:
        return v.label


class ClaimProcessed(RegistryEvent):
    """Emitted only when a claim reaches a terminal status."""
    claim_id: int
    customer_id_hash: str
    amount: int
    status: ClaimStatus
    timestamp: int

    @field_serializer("amount")
    def serialize_amount(self, v: int) -> str:
        return str(v)

    @field_serializer("status")
    def serialize_status(self, v: ClaimStatus) -> str:
        return v.label


class OwnershipTransferred(RegistryEvent):
    previous_owner: Optional[str] = None
    new_owner: Optional[str] = None
