"""
Durable claim storage.

The registry only needs a small key-value contract: look a claim up by id,
allocate the next id and insert a claim under it in one write, overwrite a
status, and keep the registry's own state (counter and owner). Two backends:

- InMemoryClaimStore: dict-backed, for tests and throwaway registries
- SQLiteClaimStore: local SQLite file, no external database setup required

Several registries (an API server and a CLI run, say) may share one SQLite
file, so the counter is read and advanced inside the insert transaction.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Optional

from ..registry.schema import Claim, ClaimStatus, RegistryState

logger = logging.getLogger(__name__)

# Largest value an SQLite INTEGER column can hold
SQLITE_MAX_INTEGER = 2**63 - 1


class ClaimStore(ABC):
    """
    Abstract durable map from claim id to Claim.

    Lookups return None for unknown ids. Implementations do not need their
    own locking within a process; the registry serializes all access.
    """

    @abstractmethod
    def get(self, claim_id: int) -> Optional[Claim]:
        """Return the claim stored under claim_id, or None."""

    @abstractmethod
    def insert_next(self, customer_id_hash: str, amount: int, claim_date: int) -> Claim:
        """
        Store a new Submitted claim under the next free id.

        Reading the counter, inserting the claim and advancing the counter
        form one write. Returns the stored claim.
        """

    @abstractmethod
    def update_status(self, claim_id: int, status: ClaimStatus) -> bool:
        """Overwrite a claim's status. Returns False if the claim is unknown."""

    @abstractmethod
    def load_state(self) -> Optional[RegistryState]:
        """Return persisted registry state, or None for a fresh store."""

    @abstractmethod
    def save_state(self, state: RegistryState) -> None:
        """Persist registry state (counter and owner)."""

    @abstractmethod
    def set_owner(self, owner: Optional[str]) -> None:
        """Overwrite the owner, leaving the counter untouched."""

    @abstractmethod
    def list_all(
        self,
        status: Optional[ClaimStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Claim]:
        """List claims in ascending id order, optionally filtered by status."""

    @abstractmethod
    def count(self, status: Optional[ClaimStatus] = None) -> int:
        """Count claims, optionally by status."""


class InMemoryClaimStore(ClaimStore):
    """Dict-backed store; contents live as long as the object."""

    def __init__(self):
        self._claims: dict[int, Claim] = {}
        self._state: Optional[RegistryState] = None

    def get(self, claim_id: int) -> Optional[Claim]:
        return self._claims.get(claim_id)

    def insert_next(self, customer_id_hash: str, amount: int, claim_date: int) -> Claim:
        state = self._state or RegistryState()
        claim = Claim(
            claim_id=state.next_claim_id,
            customer_id_hash=customer_id_hash,
            amount=amount,
            claim_date=claim_date,
        )
        self._claims[claim.claim_id] = claim
        self._state = RegistryState(next_claim_id=claim.claim_id + 1, owner=state.owner)
        return claim

    def update_status(self, claim_id: int, status: ClaimStatus) -> bool:
        claim = self._claims.get(claim_id)
        if claim is None:
            return False
        self._claims[claim_id] = claim.with_status(status)
        return True

    def load_state(self) -> Optional[RegistryState]:
        if self._state is None:
            return None
        return RegistryState(next_claim_id=self._state.next_claim_id, owner=self._state.owner)

    def save_state(self, state: RegistryState) -> None:
        self._state = RegistryState(next_claim_id=state.next_claim_id, owner=state.owner)

    def set_owner(self, owner: Optional[str]) -> None:
        state = self._state or RegistryState()
        self._state = RegistryState(next_claim_id=state.next_claim_id, owner=owner)

    def list_all(
        self,
        status: Optional[ClaimStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Claim]:
        claims = [self._claims[k] for k in sorted(self._claims)]
        if status is not None:
            claims = [c for c in claims if c.status == status]
        return claims[offset:offset + limit]

    def count(self, status: Optional[ClaimStatus] = None) -> int:
        if status is None:
            return len(self._claims)
        return sum(1 for c in self._claims.values() if c.status == status)


# Database file location
DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "data" / "claims.db"


class SQLiteClaimStore(ClaimStore):
    """
    SQLite-based storage for the claim registry.

    Usage:
        store = SQLiteClaimStore(Path("data/claims.db"))
        registry = ClaimRegistry(store, deployer="0xOwner")

    Amounts are kept as TEXT because they may exceed SQLite's 64-bit
    INTEGER range.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the claim store."""
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS claims (
                    claim_id INTEGER PRIMARY KEY,
                    customer_id_hash TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    claim_date INTEGER NOT NULL,
                    status INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS registry_state (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    next_claim_id INTEGER NOT NULL,
                    owner TEXT
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_claims_status ON claims(status)")
            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _in_id_range(claim_id: int) -> bool:
        """Ids SQLite cannot bind as INTEGER can never have been stored."""
        return 0 < claim_id <= SQLITE_MAX_INTEGER

    def get(self, claim_id: int) -> Optional[Claim]:
        if not self._in_id_range(claim_id):
            return None

        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM claims WHERE claim_id = ?",
                (claim_id,)
            ).fetchone()

            if row:
                return self._row_to_claim(row)
        return None

    def insert_next(self, customer_id_hash: str, amount: int, claim_date: int) -> Claim:
        with self._get_connection() as conn:
            # Take the write lock before reading the counter so concurrent
            # writers on the same file never allocate the same id.
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT next_claim_id FROM registry_state WHERE id = 1"
            ).fetchone()
            claim = Claim(
                claim_id=row["next_claim_id"] if row else 1,
                customer_id_hash=customer_id_hash,
                amount=amount,
                claim_date=claim_date,
            )
            conn.execute("""
                INSERT INTO claims (claim_id, customer_id_hash, amount, claim_date, status)
                VALUES (?, ?, ?, ?, ?)
            """, (
                claim.claim_id,
                claim.customer_id_hash,
                str(claim.amount),
                claim.claim_date,
                int(claim.status),
            ))
            conn.execute("""
                INSERT INTO registry_state (id, next_claim_id, owner) VALUES (1, ?, NULL)
                ON CONFLICT(id) DO UPDATE SET next_claim_id = excluded.next_claim_id
            """, (claim.claim_id + 1,))
            conn.commit()
        return claim

    def update_status(self, claim_id: int, status: ClaimStatus) -> bool:
        if not self._in_id_range(claim_id):
            return False

        with self._get_connection() as conn:
            result = conn.execute(
                "UPDATE claims SET status = ? WHERE claim_id = ?",
                (int(status), claim_id)
            )
            conn.commit()
            return result.rowcount > 0

    def load_state(self) -> Optional[RegistryState]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT next_claim_id, owner FROM registry_state WHERE id = 1"
            ).fetchone()
        if row is None:
            return None
        return RegistryState(next_claim_id=row["next_claim_id"], owner=row["owner"])

    def save_state(self, state: RegistryState) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO registry_state (id, next_claim_id, owner) VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    next_claim_id = excluded.next_claim_id,
                    owner = excluded.owner
            """, (state.next_claim_id, state.owner))
            conn.commit()

    def set_owner(self, owner: Optional[str]) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO registry_state (id, next_claim_id, owner) VALUES (1, 1, ?)
                ON CONFLICT(id) DO UPDATE SET owner = excluded.owner
            """, (owner,))
            conn.commit()

    def list_all(
        self,
        status: Optional[ClaimStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Claim]:
        """
        List claims with optional filtering.

        Args:
            status: Filter by status
            limit: Max results
            offset: Pagination offset

        Returns:
            Claims in ascending id order
        """
        query = "SELECT * FROM claims WHERE 1=1"
        params = []

        if status is not None:
            query += " AND status = ?"
            params.append(int(status))

        query += " ORDER BY claim_id ASC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_claim(row) for row in rows]

    def count(self, status: Optional[ClaimStatus] = None) -> int:
        with self._get_connection() as conn:
            if status is not None:
                row = conn.execute(
                    "SELECT COUNT(*) FROM claims WHERE status = ?",
                    (int(status),)
                ).fetchone()
            else:
                row = conn.execute("SELECT COUNT(*) FROM claims").fetchone()
            return row[0]

    def _row_to_claim(self, row: sqlite3.Row) -> Claim:
        """Convert a database row to Claim."""
        return Claim(
            claim_id=row["claim_id"],
            customer_id_hash=row["customer_id_hash"],
            amount=int(row["amount"]),
            claim_date=row["claim_date"],
            status=ClaimStatus(row["status"]),
        )


# =============================================================================
# Convenience Functions
# =============================================================================

@lru_cache
def get_claim_store(db_path: Optional[Path] = None) -> SQLiteClaimStore:
    """Get the SQLite store for db_path (defaults to the configured path)."""
    if db_path is None:
        from ..utils.config import get_settings
        db_path = get_settings().db_path
    store = SQLiteClaimStore(Path(db_path))
    logger.info(f"Using claim database: {store.db_path.resolve()}")
    return store
