"""
Tests for the claim registry lifecycle.

Verifies that ClaimRegistry:
- Assigns gap-free sequential ids starting at 1
- Rejects zero amounts without creating records
- Restricts status changes to the owner and treats final statuses as terminal
- Emits submission, status and processing notifications
- Answers ownership checks and customer listings by hash
"""

import hashlib
import json
import threading

import pytest

from src.registry import (
    ClaimNotFound,
    ClaimProcessed,
    ClaimRegistry,
    ClaimStatus,
    ClaimStatusUpdated,
    ClaimSubmitted,
    InvalidAmount,
    InvalidOwner,
    InvalidStatus,
    OwnershipTransferred,
    StatusAlreadySet,
    Unauthorized,
    hash_customer_id,
)
from src.storage import InMemoryClaimStore


OWNER = "0xOwner"
ALICE = "0xAlice"
ONE_ETHER = 1_000_000_000_000_000_000


# ============================================================================
# Fixtures
# ============================================================================


class FixedClock:
    """Clock returning a settable Unix timestamp."""

    def __init__(self, now: int = 1_700_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def registry(clock):
    return ClaimRegistry(InMemoryClaimStore(), deployer=OWNER, clock=clock)


@pytest.fixture
def events(registry):
    received = []
    registry.subscribe(received.append, replay_initial=False)
    return received


# ============================================================================
# Submission
# ============================================================================


class TestSubmitClaim:
    """submit_claim assigns ids and stores hashed customer identity."""

    def test_first_claim_gets_id_one(self, registry):
        assert registry.submit_claim("USER123", ONE_ETHER, caller=ALICE) == 1

    def test_ids_strictly_increasing_without_gaps(self, registry):
        callers = [ALICE, "0xBob", OWNER, ALICE, "0xCarol"]
        ids = [registry.submit_claim(f"C{i}", 10 + i, caller=c) for i, c in enumerate(callers)]
        assert ids == [1, 2, 3, 4, 5]
        assert registry.next_claim_id == 6

    def test_stored_fields(self, registry, clock):
        claim_id = registry.submit_claim("USER123", ONE_ETHER, caller=ALICE)
        customer_id_hash, amount, claim_date, status = registry.get_claim(claim_id)

        assert customer_id_hash == hash_customer_id("USER123")
        assert amount == ONE_ETHER
        assert claim_date == clock.now
        assert status == ClaimStatus.SUBMITTED

    def test_zero_amount_rejected_and_nothing_created(self, registry, events):
        with pytest.raises(InvalidAmount):
            registry.submit_claim("USER123", 0, caller=ALICE)

        assert registry.next_claim_id == 1
        assert events == []
        with pytest.raises(ClaimNotFound):
            registry.get_claim(1)

    def test_failed_submission_does_not_consume_id(self, registry):
        registry.submit_claim("A", 5, caller=ALICE)
        with pytest.raises(InvalidAmount):
            registry.submit_claim("A", 0, caller=ALICE)
        assert registry.submit_claim("A", 6, caller=ALICE) == 2

    @pytest.mark.parametrize("caller", [None, 42])
    def test_caller_must_be_identity_string(self, registry, events, caller):
        with pytest.raises(Unauthorized):
            registry.submit_claim("USER123", 10, caller=caller)

        assert registry.next_claim_id == 1
        assert events == []
        with pytest.raises(ClaimNotFound):
            registry.get_claim(1)

    @pytest.mark.parametrize("amount", [-1, 2**256, 1.5, True, "100"])
    def test_out_of_range_or_non_integer_amount_rejected(self, registry, amount):
        with pytest.raises(InvalidAmount):
            registry.submit_claim("USER123", amount, caller=ALICE)

    def test_max_uint256_amount_accepted(self, registry):
        claim_id = registry.submit_claim("USER123", 2**256 - 1, caller=ALICE)
        assert registry.get_claim(claim_id)[1] == 2**256 - 1

    def test_submission_notification(self, registry, events, clock):
        registry.submit_claim("USER123", ONE_ETHER, caller=ALICE)

        assert len(events) == 1
        event = events[0]
        assert isinstance(event, ClaimSubmitted)
        assert event.claim_id == 1
        assert event.customer_id_hash == hash_customer_id("USER123")
        assert event.amount == ONE_ETHER
        assert event.timestamp == clock.now
        assert event.submitter == ALICE

    def test_concurrent_submissions_get_unique_ids(self, registry):
        results = []
        lock = threading.Lock()

        def worker(n):
            for i in range(25):
                claim_id = registry.submit_claim(f"W{n}", i + 1, caller=f"0x{n}")
                with lock:
                    results.append(claim_id)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == list(range(1, 201))
        assert registry.next_claim_id == 201


# ============================================================================
# Status Updates
# ============================================================================


class TestUpdateClaimStatus:
    """update_claim_status is owner-only and final statuses are terminal."""

    def test_owner_approves(self, registry, events, clock):
        claim_id = registry.submit_claim("USER123", ONE_ETHER, caller=ALICE)
        clock.now += 60
        registry.update_claim_status(claim_id, ClaimStatus.APPROVED, caller=OWNER)

        assert registry.get_claim(claim_id)[3] == ClaimStatus.APPROVED

        updated, processed = events[1], events[2]
        assert isinstance(updated, ClaimStatusUpdated)
        assert (updated.claim_id, updated.old_status, updated.new_status) == (
            1, ClaimStatus.SUBMITTED, ClaimStatus.APPROVED
        )
        assert updated.updater == OWNER
        assert updated.timestamp == clock.now

        assert isinstance(processed, ClaimProcessed)
        assert processed.customer_id_hash == hash_customer_id("USER123")
        assert processed.amount == ONE_ETHER
        assert processed.status == ClaimStatus.APPROVED

    def test_non_owner_unauthorized_and_status_unchanged(self, registry, events):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)

        with pytest.raises(Unauthorized):
            registry.update_claim_status(claim_id, ClaimStatus.APPROVED, caller=ALICE)

        assert registry.get_claim(claim_id)[3] == ClaimStatus.SUBMITTED
        assert len(events) == 1

    def test_unauthorized_checked_before_existence(self, registry):
        with pytest.raises(Unauthorized):
            registry.update_claim_status(999, ClaimStatus.APPROVED, caller=ALICE)

    def test_unknown_claim(self, registry):
        with pytest.raises(ClaimNotFound):
            registry.update_claim_status(999, ClaimStatus.APPROVED, caller=OWNER)

    def test_same_status_rejected(self, registry):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)
        with pytest.raises(StatusAlreadySet):
            registry.update_claim_status(claim_id, ClaimStatus.SUBMITTED, caller=OWNER)

    @pytest.mark.parametrize("final", [ClaimStatus.APPROVED, ClaimStatus.REJECTED])
    @pytest.mark.parametrize("target", list(ClaimStatus))
    def test_final_status_is_terminal(self, registry, events, final, target):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)
        registry.update_claim_status(claim_id, final, caller=OWNER)
        emitted = len(events)

        with pytest.raises(StatusAlreadySet):
            registry.update_claim_status(claim_id, target, caller=OWNER)

        assert registry.get_claim(claim_id)[3] == final
        assert len(events) == emitted

    def test_rejection_emits_processed(self, registry, events):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)
        registry.update_claim_status(claim_id, "Rejected", caller=OWNER)

        assert [e.event_name for e in events] == [
            "ClaimSubmitted", "ClaimStatusUpdated", "ClaimProcessed"
        ]
        assert events[-1].status == ClaimStatus.REJECTED

    @pytest.mark.parametrize("value", [1, "1", "approved", "APPROVED", " Approved "])
    def test_status_accepts_codes_and_names(self, registry, value):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)
        registry.update_claim_status(claim_id, value, caller=OWNER)
        assert registry.get_claim(claim_id)[3] == ClaimStatus.APPROVED

    @pytest.mark.parametrize("value", [3, -1, "Pending", "", None, 1.0, "²", "١"])
    def test_invalid_status(self, registry, value):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)
        with pytest.raises(InvalidStatus):
            registry.update_claim_status(claim_id, value, caller=OWNER)
        assert registry.get_claim(claim_id)[3] == ClaimStatus.SUBMITTED


# ============================================================================
# Queries
# ============================================================================


class TestQueries:
    """get_claim, verify_claim_ownership and text output."""

    def test_get_unknown_claim(self, registry):
        with pytest.raises(ClaimNotFound):
            registry.get_claim(999)

    @pytest.mark.parametrize("claim_id", [0, -1, "1", None])
    def test_get_invalid_id(self, registry, claim_id):
        registry.submit_claim("USER123", 10, caller=ALICE)
        with pytest.raises(ClaimNotFound):
            registry.get_claim(claim_id)

    def test_verify_ownership(self, registry):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)

        assert registry.verify_claim_ownership(claim_id, "USER123") is True
        assert registry.verify_claim_ownership(claim_id, "USER124") is False
        assert registry.verify_claim_ownership(claim_id, "user123") is False
        assert registry.verify_claim_ownership(claim_id, "") is False

    def test_verify_unknown_claim(self, registry):
        with pytest.raises(ClaimNotFound):
            registry.verify_claim_ownership(1, "USER123")

    def test_serialize_claim(self, registry, clock):
        claim_id = registry.submit_claim("USER123", ONE_ETHER, caller=ALICE)
        text = registry.serialize_claim(claim_id)

        expected_hash = "0x" + hashlib.sha3_256(b"USER123").hexdigest()
        assert text == (
            '{"claimId":"1",'
            f'"customerIdHash":"{expected_hash}",'
            '"amount":"1000000000000000000",'
            f'"claimDate":"{clock.now}",'
            '"status":"Submitted"}'
        )

    def test_serialize_reflects_status(self, registry):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)
        registry.update_claim_status(claim_id, ClaimStatus.REJECTED, caller=OWNER)
        assert json.loads(registry.serialize_claim(claim_id))["status"] == "Rejected"

    def test_serialize_unknown_claim(self, registry):
        with pytest.raises(ClaimNotFound):
            registry.serialize_claim(1)

    def test_list_customer_claims(self, registry):
        registry.submit_claim("USER123", 10, caller=ALICE)
        registry.submit_claim("OTHER", 20, caller=ALICE)
        registry.submit_claim("USER123", 30, caller="0xBob")
        registry.submit_claim("OTHER", 40, caller=ALICE)
        registry.submit_claim("USER123", 50, caller=ALICE)

        text = registry.list_customer_claims_as_text("USER123")
        parsed = json.loads(text)

        assert [c["claimId"] for c in parsed] == ["1", "3", "5"]
        assert [c["amount"] for c in parsed] == ["10", "30", "50"]
        assert text == "[" + ",".join(registry.serialize_claim(i) for i in (1, 3, 5)) + "]"

    def test_list_customer_claims_empty(self, registry):
        registry.submit_claim("OTHER", 20, caller=ALICE)
        assert registry.list_customer_claims_as_text("USER123") == "[]"

    def test_list_on_empty_registry(self, registry):
        assert registry.list_customer_claims_as_text("USER123") == "[]"


# ============================================================================
# Owner Role
# ============================================================================


class TestOwnership:
    """transfer_ownership and renounce_ownership."""

    def test_deployer_is_owner(self, registry):
        assert registry.owner == OWNER

    def test_initial_owner_notification_replayed(self, registry):
        received = []
        registry.subscribe(received.append)
        assert received == [OwnershipTransferred(previous_owner=None, new_owner=OWNER)]

    def test_registry_requires_deployer(self):
        with pytest.raises(InvalidOwner):
            ClaimRegistry(InMemoryClaimStore(), deployer=None)

    def test_transfer(self, registry, events):
        registry.transfer_ownership(ALICE, caller=OWNER)

        assert registry.owner == ALICE
        assert events == [OwnershipTransferred(previous_owner=OWNER, new_owner=ALICE)]

        claim_id = registry.submit_claim("USER123", 10, caller="0xBob")
        with pytest.raises(Unauthorized):
            registry.update_claim_status(claim_id, ClaimStatus.APPROVED, caller=OWNER)
        registry.update_claim_status(claim_id, ClaimStatus.APPROVED, caller=ALICE)

    def test_transfer_by_non_owner(self, registry):
        with pytest.raises(Unauthorized):
            registry.transfer_ownership(ALICE, caller=ALICE)
        assert registry.owner == OWNER

    @pytest.mark.parametrize("new_owner", ["", "   ", None])
    def test_transfer_to_empty_identity(self, registry, new_owner):
        with pytest.raises(InvalidOwner):
            registry.transfer_ownership(new_owner, caller=OWNER)
        assert registry.owner == OWNER

    def test_renounce(self, registry, events):
        claim_id = registry.submit_claim("USER123", 10, caller=ALICE)
        registry.renounce_ownership(caller=OWNER)

        assert registry.owner is None
        assert events[-1] == OwnershipTransferred(previous_owner=OWNER, new_owner=None)

        with pytest.raises(Unauthorized):
            registry.update_claim_status(claim_id, ClaimStatus.APPROVED, caller=OWNER)
        with pytest.raises(Unauthorized):
            registry.transfer_ownership(OWNER, caller=OWNER)
        with pytest.raises(Unauthorized):
            registry.update_claim_status(claim_id, ClaimStatus.APPROVED, caller=None)

    def test_renounce_by_non_owner(self, registry):
        with pytest.raises(Unauthorized):
            registry.renounce_ownership(caller=ALICE)
        assert registry.owner == OWNER

    def test_submissions_continue_after_renounce(self, registry):
        registry.renounce_ownership(caller=OWNER)
        assert registry.submit_claim("USER123", 10, caller=ALICE) == 1


# ============================================================================
# End-to-end Scenario
# ============================================================================


def test_reference_scenario(registry, events):
    """Submit, read back, approve, re-approve, look up a missing claim."""
    claim_id = registry.submit_claim("USER123", ONE_ETHER, caller=ALICE)
    assert claim_id == 1

    customer_id_hash, amount, claim_date, status = registry.get_claim(1)
    assert customer_id_hash == hash_customer_id("USER123")
    assert amount == ONE_ETHER
    assert claim_date > 0
    assert status == ClaimStatus.SUBMITTED

    registry.update_claim_status(1, ClaimStatus.APPROVED, caller=OWNER)
    assert isinstance(events[-2], ClaimStatusUpdated)
    assert events[-2].old_status == ClaimStatus.SUBMITTED
    assert events[-2].new_status == ClaimStatus.APPROVED
    assert isinstance(events[-1], ClaimProcessed)
    assert events[-1].amount == ONE_ETHER

    with pytest.raises(StatusAlreadySet):
        registry.update_claim_status(1, ClaimStatus.APPROVED, caller=OWNER)

    with pytest.raises(ClaimNotFound):
        registry.get_claim(999)
