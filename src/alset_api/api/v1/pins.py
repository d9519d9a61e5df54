"""Pin API endpoints for the authenticated user."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.core.config import Settings, get_settings
from alset_api.core.dependencies import get_async_session, get_current_user_id, get_property_cache
from alset_api.lib.property_cache import InvalidAddressError, PropertyNotFoundError, StoreFailure
from alset_api.schemas.common import ErrorResponse, PaginationMeta
from alset_api.schemas.pin import CreatePinRequest, CreatePinResponse, PaginatedPinResponse, PinResponse
from alset_api.schemas.property import PropertyRecordResponse
from alset_api.services.credit_service import InsufficientCreditsError
from alset_api.services.pin_service import SearchHistoryEntryNotFoundError, create_pin, delete_pin, list_pins
from alset_api.services.property_cache_service import PropertyDataCache

pins_router = APIRouter(prefix="/pins", tags=["pins"])


@pins_router.post(
    "",
    response_model=CreatePinResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        402: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def create_user_pin(
    request: CreatePinRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    cache: Annotated[PropertyDataCache, Depends(get_property_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> CreatePinResponse:
    """Pin a previously looked-up property and count it on the property record."""
    try:
        pin, record = await create_pin(
            session,
            cache,
            user_id,
            request.address,
            request.latitude,
            request.longitude,
            search_history_id=request.search_history_id,
            title=request.title,
            cost=settings.pin_credit_cost,
        )
    except InvalidAddressError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found") from e
    except SearchHistoryEntryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Search history entry not found") from e
    except InsufficientCreditsError as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e)) from e
    except StoreFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Property store is temporarily unavailable. Please retry later.",
        ) from e
    return CreatePinResponse(
        pin=PinResponse.model_validate(pin),
        record=PropertyRecordResponse.model_validate(record),
    )


@pins_router.get("", response_model=PaginatedPinResponse)
async def get_user_pins(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
    page: int = Query(1, ge=1),  # noqa: B008
    page_size: int = Query(20, ge=1, le=100),  # noqa: B008
) -> PaginatedPinResponse:
    """List the user's pins, newest first."""
    pins, total = await list_pins(session, user_id, page=page, page_size=page_size)
    return PaginatedPinResponse(
        items=[PinResponse.model_validate(p) for p in pins],
        pagination=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@pins_router.delete("/{pin_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_pin(
    pin_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> Response:
    """Delete one of the user's pins."""
    if not await delete_pin(session, user_id, pin_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pin not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
