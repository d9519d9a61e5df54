"""Deterministic address hashing used as the property cache key."""

import hashlib

from alset_api.lib.address.normalizer import normalize_address


def hash_normalized(normalized_address: str) -> str:
    """SHA-256 hex digest of an already-normalized address."""
    return hashlib.sha256(normalized_address.encode("utf-8")).hexdigest()


def hash_address(address: str) -> str:
    """Hash a freeform address.

    Addresses that normalize to the same string share a hash, so case,
    whitespace and suffix spelling differences map to one cache key.

    Args:
        address: Raw freeform address.

    Returns:
        64-character lowercase hex digest.

    Raises:
        ValueError: If the address normalizes to an empty string.
    """
    normalized = normalize_address(address)
    if not normalized:
        msg = "Address must not be empty or whitespace-only"
        raise ValueError(msg)
    return hash_normalized(normalized)
