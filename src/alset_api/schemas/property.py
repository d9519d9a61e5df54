"""Pydantic v2 schemas for property cache operations."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from alset_api.lib.address import parse_address_components
from alset_api.lib.property_data import summarize_payload


def require_address_text(v: str) -> str:
    if not v.strip():
        msg = "Address must not be empty or whitespace-only"
        raise ValueError(msg)
    return v


class PropertySummaryResponse(BaseModel):
    """Well-known fields extracted from the provider payload."""

    zpid: Any = None
    zestimate: float | None = None
    rent_zestimate: float | None = None
    price: float | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None
    living_area: float | None = None
    year_built: int | None = None
    property_type: str | None = None
    home_status: str | None = None
    last_sold_price: float | None = None
    last_sold_date: str | None = None
    tax_assessed_value: float | None = None
    tax_assessed_year: int | None = None


class AddressComponentsResponse(BaseModel):
    """Best-effort parse of the normalized address."""

    street_number: str | None = None
    pre_direction: str | None = None
    street_name: str | None = None
    street_type: str | None = None
    post_direction: str | None = None
    unit: str | None = None
    city: str | None = None
    state: str | None = None
    zipcode: str | None = None


class PropertyRecordResponse(BaseModel):
    """A cached property record without its raw payload."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    address_hash: str
    normalized_address: str
    latitude: float | None = None
    longitude: float | None = None
    provider_data_fresh: bool
    last_refreshed_at: datetime | None = None
    total_searches: int
    last_searched_at: datetime | None = None
    total_pins: int
    created_at: datetime
    updated_at: datetime


class PropertyLookupResponse(BaseModel):
    """Result of a cache lookup."""

    record: PropertyRecordResponse
    was_cache_hit: bool
    components: AddressComponentsResponse
    summary: PropertySummaryResponse
    payload: dict[str, Any] = Field(default_factory=dict, description="Raw provider payload")

    @classmethod
    def from_lookup(cls, record: Any, payload: dict[str, Any], was_cache_hit: bool) -> "PropertyLookupResponse":
        return cls(
            record=PropertyRecordResponse.model_validate(record),
            was_cache_hit=was_cache_hit,
            components=AddressComponentsResponse(**parse_address_components(record.normalized_address).to_dict()),
            summary=PropertySummaryResponse(**summarize_payload(payload).to_dict()),
            payload=payload,
        )


class AddressRequest(BaseModel):
    """Request body naming a single address."""

    address: str = Field(..., min_length=1, max_length=500)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return require_address_text(v)


class SmartSearchRequest(BaseModel):
    """Request body for an enriched, credit-gated search."""

    address: str = Field(..., min_length=1, max_length=500)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    force_refresh: bool = False

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return require_address_text(v)

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


class SearchResponse(BaseModel):
    """Result of a basic or smart search."""

    search_type: str
    enriched: bool
    was_cache_hit: bool
    credits_consumed: int
    history_id: uuid.UUID
    record: PropertyRecordResponse | None = None
    summary: PropertySummaryResponse | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    message: str | None = None
