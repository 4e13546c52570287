"""
Text serialization of claims.

Produces compact JSON with a fixed key order so the same claim always
renders to the same string:

    {"claimId":"1","customerIdHash":"0x...","amount":"1000","claimDate":"1700000000","status":"Submitted"}
"""

import json
from typing import Iterable

from .schema import Claim, status_label


def claim_to_dict(claim: Claim) -> dict:
    """Ordered dict of a claim's text fields; numbers as decimal strings."""
    return {
        "claimId": str(claim.claim_id),
        "customerIdHash": claim.customer_id_hash,
        "amount": str(claim.amount),
        "claimDate": str(claim.claim_date),
        "status": status_label(claim.status),
    }


def serialize_claim(claim: Claim) -> str:
    """Render one claim as a JSON object string."""
    return json.dumps(claim_to_dict(claim), separators=(",", ":"))


def serialize_claims(claims: Iterable[Claim]) -> str:
    """Render claims as a JSON array string, preserving iteration order."""
    return "[" + ",".join(serialize_claim(claim) for claim in claims) + "]"
