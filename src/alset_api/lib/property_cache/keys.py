"""Cache keys for freeform addresses."""

from alset_api.lib.address import hash_normalized, normalize_address
from alset_api.lib.property_cache.errors import InvalidAddressError


def address_key(address: str | None) -> tuple[str, str]:
    """Normalize an address and derive its cache key.

    Returns:
        Tuple of (normalized address, SHA-256 hash of it).

    Raises:
        InvalidAddressError: If the address is empty or whitespace-only.
    """
    normalized = normalize_address(address or "")
    if not normalized:
        msg = "Address must not be empty or whitespace-only"
        raise InvalidAddressError(msg)
    return normalized, hash_normalized(normalized)
