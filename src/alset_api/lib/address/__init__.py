"""Address library: freeform normalization, component parsing, and cache-key hashing.

Public API:
    - normalize_address: Canonical USPS-style form of a freeform address
    - parse_address_components: Best-effort component parsing
    - AddressComponents: Parsed component dataclass
    - hash_address: SHA-256 cache key of a freeform address
    - hash_normalized: SHA-256 cache key of an already-normalized address
"""

from alset_api.lib.address.hashing import hash_address, hash_normalized
from alset_api.lib.address.normalizer import AddressComponents, normalize_address, parse_address_components

__all__ = [
    "AddressComponents",
    "hash_address",
    "hash_normalized",
    "normalize_address",
    "parse_address_components",
]
