"""Property cache API endpoints: lookups, invalidation, listings, and searches."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.core.config import Settings, get_settings
from alset_api.core.dependencies import get_async_session, get_current_user_id, get_property_cache
from alset_api.lib.property_cache import InvalidAddressError, PropertyNotFoundError, StoreFailure
from alset_api.lib.property_data import PropertyDataProviderError, summarize_payload
from alset_api.schemas.common import ErrorResponse
from alset_api.schemas.property import (
    AddressRequest,
    PropertyLookupResponse,
    PropertyRecordResponse,
    PropertySummaryResponse,
    SearchResponse,
    SmartSearchRequest,
)
from alset_api.services.credit_service import InsufficientCreditsError
from alset_api.services.property_cache_service import PropertyDataCache
from alset_api.services.smart_search_service import SearchOutcome, basic_search, smart_search

properties_router = APIRouter(prefix="/properties", tags=["properties"])

_STORE_UNAVAILABLE = "Property store is temporarily unavailable. Please retry later."


def _to_search_response(outcome: SearchOutcome) -> SearchResponse:
    return SearchResponse(
        search_type=outcome.search_type,
        enriched=outcome.enriched,
        was_cache_hit=outcome.was_cache_hit,
        credits_consumed=outcome.credits_consumed,
        history_id=outcome.history_id,
        record=PropertyRecordResponse.model_validate(outcome.record) if outcome.record is not None else None,
        summary=PropertySummaryResponse(**summarize_payload(outcome.payload).to_dict()) if outcome.enriched else None,
        payload=outcome.payload,
        message=outcome.message,
    )


@properties_router.get(
    "/lookup",
    response_model=PropertyLookupResponse,
    responses={502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def lookup_property(
    cache: Annotated[PropertyDataCache, Depends(get_property_cache)],
    _user_id: Annotated[str, Depends(get_current_user_id)],
    address: str = Query(  # noqa: B008
        ...,
        max_length=500,
        description="Freeform street address",
    ),
    latitude: float | None = Query(None, ge=-90, le=90),  # noqa: B008
    longitude: float | None = Query(None, ge=-180, le=180),  # noqa: B008
    force_refresh: bool = Query(False, description="Fetch from the provider even if cached data is fresh"),  # noqa: B008
) -> PropertyLookupResponse:
    """Return cached property data, fetching from the provider when missing or stale."""
    coordinates = (latitude, longitude) if latitude is not None and longitude is not None else None
    try:
        result = await cache.lookup(address, coordinates=coordinates, force_refresh=force_refresh)
    except InvalidAddressError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except PropertyDataProviderError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Property data provider is temporarily unavailable. Please retry later.",
        ) from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_STORE_UNAVAILABLE) from e

    return PropertyLookupResponse.from_lookup(result.record, result.payload, result.was_cache_hit)


@properties_router.post("/invalidate", response_model=PropertyRecordResponse)
async def invalidate_property(
    request: AddressRequest,
    cache: Annotated[PropertyDataCache, Depends(get_property_cache)],
    _user_id: Annotated[str, Depends(get_current_user_id)],
) -> PropertyRecordResponse:
    """Mark a property's cached data stale so the next lookup refreshes it."""
    try:
        record = await cache.invalidate(request.address)
    except InvalidAddressError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found") from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_STORE_UNAVAILABLE) from e
    return PropertyRecordResponse.model_validate(record)


@properties_router.get("/popular", response_model=list[PropertyRecordResponse])
async def popular_properties(
    cache: Annotated[PropertyDataCache, Depends(get_property_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
    _user_id: Annotated[str, Depends(get_current_user_id)],
    limit: int = Query(10, ge=1),  # noqa: B008
) -> list[PropertyRecordResponse]:
    """List the most searched properties."""
    try:
        records = await cache.most_searched(min(limit, settings.property_listing_max_limit))
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_STORE_UNAVAILABLE) from e
    return [PropertyRecordResponse.model_validate(r) for r in records]


@properties_router.get("/recently-refreshed", response_model=list[PropertyRecordResponse])
async def recently_refreshed_properties(
    cache: Annotated[PropertyDataCache, Depends(get_property_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
    _user_id: Annotated[str, Depends(get_current_user_id)],
    limit: int = Query(10, ge=1),  # noqa: B008
) -> list[PropertyRecordResponse]:
    """List properties whose provider data was refreshed most recently."""
    try:
        records = await cache.recently_refreshed(min(limit, settings.property_listing_max_limit))
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_STORE_UNAVAILABLE) from e
    return [PropertyRecordResponse.model_validate(r) for r in records]


@properties_router.post(
    "/smart-search",
    response_model=SearchResponse,
    responses={402: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def smart_search_property(
    request: SmartSearchRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    cache: Annotated[PropertyDataCache, Depends(get_property_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> SearchResponse:
    """Enriched search. Costs credits only when fresh data has to be fetched."""
    try:
        outcome = await smart_search(
            session,
            cache,
            user_id,
            request.address,
            coordinates=request.coordinates,
            force_refresh=request.force_refresh,
            cost=settings.smart_search_credit_cost,
        )
    except InvalidAddressError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except InsufficientCreditsError as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e)) from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_STORE_UNAVAILABLE) from e
    return _to_search_response(outcome)


@properties_router.post("/basic-search", response_model=SearchResponse)
async def basic_search_property(
    request: AddressRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    cache: Annotated[PropertyDataCache, Depends(get_property_cache)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> SearchResponse:
    """Free search against already-cached records. Never calls the provider."""
    try:
        outcome = await basic_search(session, cache, user_id, request.address)
    except InvalidAddressError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_STORE_UNAVAILABLE) from e
    return _to_search_response(outcome)
