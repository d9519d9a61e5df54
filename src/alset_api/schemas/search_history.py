"""Pydantic v2 schemas for search history."""

import uuid
from datetime import datetime

from pydantic import BaseModel

from alset_api.schemas.common import PaginationMeta


class SearchHistoryResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    address: str
    address_hash: str
    search_type: str
    property_record_id: uuid.UUID | None = None
    was_cache_hit: bool
    enriched: bool
    credits_consumed: int
    created_at: datetime


class PaginatedSearchHistoryResponse(BaseModel):
    """Paginated list of a user's searches."""

    items: list[SearchHistoryResponse]
    pagination: PaginationMeta
