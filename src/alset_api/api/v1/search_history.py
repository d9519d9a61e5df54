"""Search history API endpoints for the authenticated user."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.core.dependencies import get_async_session, get_current_user_id
from alset_api.schemas.common import PaginationMeta
from alset_api.schemas.search_history import PaginatedSearchHistoryResponse, SearchHistoryResponse
from alset_api.services.smart_search_service import delete_search_history_entry, list_search_history

search_history_router = APIRouter(prefix="/search-history", tags=["search-history"])


@search_history_router.get("", response_model=PaginatedSearchHistoryResponse)
async def get_search_history(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
    page: int = Query(1, ge=1),  # noqa: B008
    page_size: int = Query(20, ge=1, le=100),  # noqa: B008
) -> PaginatedSearchHistoryResponse:
    """List the user's searches, newest first."""
    entries, total = await list_search_history(session, user_id, page=page, page_size=page_size)
    return PaginatedSearchHistoryResponse(
        items=[SearchHistoryResponse.model_validate(e) for e in entries],
        pagination=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@search_history_router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_search_history(
    entry_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> Response:
    """Delete one of the user's history entries."""
    deleted = await delete_search_history_entry(session, user_id, entry_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Search history entry not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
