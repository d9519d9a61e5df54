"""ORM model registry: import all models so Alembic autogenerate discovers them."""

from alset_api.models.credit import CreditAccount, CreditActionType, CreditTransaction
from alset_api.models.pin import Pin
from alset_api.models.property_record import PropertyRecord
from alset_api.models.search_history import SearchHistory

__all__ = [
    "CreditAccount",
    "CreditActionType",
    "CreditTransaction",
    "Pin",
    "PropertyRecord",
    "SearchHistory",
]
