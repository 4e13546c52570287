"""
Storage module for the claim registry.

Provides the durable map the registry runs on:
- ClaimStore: abstract contract
- InMemoryClaimStore: dict-backed
- SQLiteClaimStore: local SQLite database
"""

from .claim_store import (
    ClaimStore,
    InMemoryClaimStore,
    RegistryState,
    SQLiteClaimStore,
    get_claim_store,
)

__all__ = [
    "ClaimStore",
    "InMemoryClaimStore",
    "RegistryState",
    "SQLiteClaimStore",
    "get_claim_store",
]
