"""Property cache library: persistence, freshness and refresh locking.

Public API:
    - PropertyRecordStore: Atomic record reads and writes
    - KeyedLockTable: Per-address refresh locks
    - is_fresh / needs_refresh / FRESHNESS_WINDOW: Freshness rules
    - address_key: Normalized address and cache key, validated
    - InvalidAddressError / StoreFailure / PropertyNotFoundError: Error taxonomy
"""

from alset_api.lib.property_cache.errors import InvalidAddressError, PropertyNotFoundError, StoreFailure
from alset_api.lib.property_cache.freshness import FRESHNESS_WINDOW, as_utc, is_fresh, needs_refresh
from alset_api.lib.property_cache.keys import address_key
from alset_api.lib.property_cache.locks import KeyedLockTable
from alset_api.lib.property_cache.store import PropertyRecordStore

__all__ = [
    "FRESHNESS_WINDOW",
    "InvalidAddressError",
    "KeyedLockTable",
    "PropertyNotFoundError",
    "PropertyRecordStore",
    "StoreFailure",
    "address_key",
    "as_utc",
    "is_fresh",
    "needs_refresh",
]
