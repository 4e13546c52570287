"""
Claim registry.

Owns the claim table, the identifier sequence and the owner policy:
- submit_claim: anyone may file a claim with a positive amount
- update_claim_status: owner-only, Submitted -> Approved/Rejected
- get_claim / verify_claim_ownership / serialize_claim: read-only queries
- list_customer_claims_as_text: every claim for one customer, by hash
- transfer_ownership / renounce_ownership: owner role management

Each public operation holds one lock for its whole duration, so operations
are atomic with respect to each other. The counter and owner are re-read
from the store at the start of every operation, so registries in other
processes sharing the same database are seen immediately.
"""

import logging
import threading
import time
from typing import Any, Callable, Optional, TYPE_CHECKING

from .errors import ClaimNotFound, InvalidAmount, InvalidOwner, StatusAlreadySet, Unauthorized
from .hashing import hash_customer_id
from .schema import (
    UINT256_MAX,
    Claim,
    ClaimProcessed,
    ClaimStatus,
    ClaimStatusUpdated,
    ClaimSubmitted,
    OwnershipTransferred,
    RegistryEvent,
    RegistryState,
)
from .serializer import serialize_claim, serialize_claims

if TYPE_CHECKING:
    from ..storage.claim_store import ClaimStore

logger = logging.getLogger(__name__)

EventListener = Callable[[RegistryEvent], None]


def _system_clock() -> int:
    return int(time.time())


class ClaimRegistry:
    """
    Authenticated claim registry over a durable ClaimStore.

    Usage:
        registry = ClaimRegistry(InMemoryClaimStore(), deployer="0xOwner")

        claim_id = registry.submit_claim("USER123", 10**18, caller="0xAlice")
        registry.update_claim_status(claim_id, ClaimStatus.APPROVED, caller="0xOwner")
        registry.get_claim(claim_id)

    A store that already holds registry state is resumed as-is: the counter
    and owner come from the store and `deployer` is ignored.
    """

    def __init__(
        self,
        store: "ClaimStore",
        deployer: Optional[str] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize the registry.

        Args:
            store: Durable claim map
            deployer: Identity that becomes owner of a fresh store
            clock: Returns the current Unix time in seconds
        """
        self._store = store
        self._clock = clock or _system_clock
        self._lock = threading.RLock()
        self._listeners: list[EventListener] = []

        state = store.load_state()
        if state is None:
            if not deployer:
                raise InvalidOwner.for_owner(deployer)
            self._state = RegistryState(next_claim_id=1, owner=deployer)
            store.save_state(self._state)
            logger.info(f"Initialized new claim registry owned by {deployer}")
            self._initial_event: Optional[RegistryEvent] = OwnershipTransferred(
                previous_owner=None, new_owner=deployer
            )
        else:
            self._state = state
            self._initial_event = None
            logger.info(
                f"Resumed claim registry: next claim id {state.next_claim_id}, "
                f"owner {state.owner}"
            )

    # =========================================================================
    # Notifications
    # =========================================================================

    def subscribe(self, listener: EventListener, replay_initial: bool = True) -> None:
        """
        Register a callback for every notification emitted after this call.

        With replay_initial, a listener attached to a freshly created registry
        also receives the initial OwnershipTransferred notification.
        """
        with self._lock:
            self._listeners.append(listener)
            if replay_initial and self._initial_event is not None:
                listener(self._initial_event)

    def _emit(self, event: RegistryEvent) -> None:
        logger.info(f"{event.event_name}: {event.model_dump(mode='json')}")
        for listener in list(self._listeners):
            listener(event)

    # =========================================================================
    # Owner Role
    # =========================================================================

    def _refresh_state(self) -> RegistryState:
        state = self._store.load_state()
        if state is not None:
            self._state = state
        return self._state

    @property
    def owner(self) -> Optional[str]:
        """Current owner identity, None once renounced."""
        with self._lock:
            return self._refresh_state().owner

    @property
    def next_claim_id(self) -> int:
        """Identifier the next successful submission will receive."""
        with self._lock:
            return self._refresh_state().next_claim_id

    def _require_owner(self, caller: Optional[str], operation: str) -> None:
        owner = self._refresh_state().owner
        if owner is None or caller != owner:
            logger.warning(f"Rejected {operation} from non-owner {caller!r}")
            raise Unauthorized.for_caller(caller, operation)

    def transfer_ownership(self, new_owner: str, caller: str) -> None:
        """Hand the owner role to new_owner. Owner only."""
        with self._lock:
            self._require_owner(caller, "transfer ownership")
            if not new_owner or not isinstance(new_owner, str) or not new_owner.strip():
                raise InvalidOwner.for_owner(new_owner)
            self._set_owner(new_owner)

    def renounce_ownership(self, caller: str) -> None:
        """Drop the owner role for good; owner-only operations fail afterwards."""
        with self._lock:
            self._require_owner(caller, "renounce ownership")
            self._set_owner(None)

    def _set_owner(self, new_owner: Optional[str]) -> None:
        previous = self._state.owner
        self._store.set_owner(new_owner)
        self._state = RegistryState(next_claim_id=self._state.next_claim_id, owner=new_owner)
        self._emit(OwnershipTransferred(previous_owner=previous, new_owner=new_owner))

    # =========================================================================
    # Claim Operations
    # =========================================================================

    def submit_claim(self, customer_id: str, amount: int, caller: str) -> int:
        """
        File a new claim.

        Args:
            customer_id: Raw customer identifier (only its hash is stored)
            amount: Claimed amount, 0 < amount < 2**256
            caller: Submitting identity

        Returns:
            The newly assigned claim id

        Raises:
            InvalidAmount: amount is zero, negative, too large or not an int
            Unauthorized: caller is not an identity string
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= UINT256_MAX:
            logger.warning(f"Rejected claim submission with amount {amount!r}")
            raise InvalidAmount.for_amount(amount)
        if not isinstance(caller, str):
            logger.warning(f"Rejected claim submission from caller {caller!r}")
            raise Unauthorized.for_caller(caller, "submit claim")

        customer_id_hash = hash_customer_id(customer_id)

        with self._lock:
            claim_date = self._clock()
            claim = self._store.insert_next(customer_id_hash, amount, claim_date)
            self._refresh_state()

            self._emit(ClaimSubmitted(
                claim_id=claim.claim_id,
                customer_id_hash=customer_id_hash,
                amount=amount,
                timestamp=claim.claim_date,
                submitter=caller,
            ))
            return claim.claim_id

    def update_claim_status(self, claim_id: int, new_status: Any, caller: str) -> None:
        """
        Move a claim to a new status. Owner only.

        Approved and Rejected are terminal: once a claim holds either, every
        further update fails with StatusAlreadySet, whatever the target.

        Raises:
            Unauthorized: caller is not the owner
            ClaimNotFound: no such claim
            InvalidStatus: new_status names no status
            StatusAlreadySet: new_status is current, or claim is final
        """
        with self._lock:
            self._require_owner(caller, "update claim status")
            claim = self._require_claim(claim_id)
            status = ClaimStatus.parse(new_status)

            if status == claim.status or claim.status.is_terminal:
                logger.warning(
                    f"Rejected status change for claim {claim_id}: "
                    f"{claim.status.label} -> {status.label}"
                )
                raise StatusAlreadySet.for_transition(claim_id, claim.status, status)

            self._store.update_status(claim_id, status)
            now = self._clock()

            self._emit(ClaimStatusUpdated(
                claim_id=claim_id,
                old_status=claim.status,
                new_status=status,
                timestamp=now,
                updater=caller,
            ))
            if status.is_terminal:
                self._emit(ClaimProcessed(
                    claim_id=claim_id,
                    customer_id_hash=claim.customer_id_hash,
                    amount=claim.amount,
                    status=status,
                    timestamp=now,
                ))

    def get_claim(self, claim_id: int) -> tuple[str, int, int, ClaimStatus]:
        """
        Look up a claim.

        Returns:
            Tuple of (customer_id_hash, amount, claim_date, status)
        """
        with self._lock:
            return self._require_claim(claim_id).as_tuple()

    def get_claim_record(self, claim_id: int) -> Claim:
        """Like get_claim, but returns the full Claim model."""
        with self._lock:
            return self._require_claim(claim_id)

    def verify_claim_ownership(self, claim_id: int, customer_id: str) -> bool:
        """Whether customer_id hashes to the claim's stored customer hash."""
        with self._lock:
            claim = self._require_claim(claim_id)
        return hash_customer_id(customer_id) == claim.customer_id_hash

    def serialize_claim(self, claim_id: int) -> str:
        """Render one claim as JSON text."""
        with self._lock:
            return serialize_claim(self._require_claim(claim_id))

    def list_customer_claims_as_text(self, customer_id: str) -> str:
        """
        Render every claim belonging to customer_id as a JSON array.

        Scans the whole allocated id range, so cost grows with the total
        number of claims rather than with the number of matches.
        """
        customer_id_hash = hash_customer_id(customer_id)
        with self._lock:
            matches = []
            for claim_id in range(1, self._refresh_state().next_claim_id):
                claim = self._store.get(claim_id)
                if claim is not None and claim.customer_id_hash == customer_id_hash:
                    matches.append(claim)
        return serialize_claims(matches)

    def _require_claim(self, claim_id: Any) -> Claim:
        # Ids at or past the counter were never allocated.
        claim = None
        if (
            isinstance(claim_id, int)
            and not isinstance(claim_id, bool)
            and 0 < claim_id < self._refresh_state().next_claim_id
        ):
            claim = self._store.get(claim_id)
        if claim is None:
            raise ClaimNotFound.for_id(claim_id)
        return claim
