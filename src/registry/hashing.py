"""Customer identifier hashing."""

import hashlib


def hash_customer_id(customer_id: str) -> str:
    """
    Hash a raw customer identifier.

    Returns the SHA3-256 digest of the UTF-8 bytes as '0x' followed by
    64 lowercase hex characters.
    """
    if not isinstance(customer_id, str):
        raise TypeError(f"customer_id must be str, got {type(customer_id).__name__}")
    return "0x" + hashlib.sha3_256(customer_id.encode("utf-8")).hexdigest()
