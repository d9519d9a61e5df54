"""Pydantic v2 schemas for user pins."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from alset_api.schemas.common import PaginationMeta
from alset_api.schemas.property import PropertyRecordResponse, require_address_text


class CreatePinRequest(BaseModel):
    """Request body for pinning a looked-up property."""

    address: str = Field(..., min_length=1, max_length=500)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    search_history_id: uuid.UUID | None = None
    title: str | None = Field(default=None, max_length=255)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return require_address_text(v)


class PinResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    address: str
    address_hash: str
    latitude: float
    longitude: float
    title: str | None = None
    property_record_id: uuid.UUID | None = None
    search_history_id: uuid.UUID | None = None
    created_at: datetime


class CreatePinResponse(BaseModel):
    """The new pin and the pinned property's updated counters."""

    pin: PinResponse
    record: PropertyRecordResponse


class PaginatedPinResponse(BaseModel):
    """Paginated list of a user's pins."""

    items: list[PinResponse]
    pagination: PaginationMeta
