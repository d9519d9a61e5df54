"""FastAPI dependency injection for database sessions, auth, and the property cache.

Provides get_async_session, get_current_user_id, and get_property_cache.
"""

from collections.abc import AsyncGenerator
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.core.config import Settings, get_settings
from alset_api.core.database import get_session_factory
from alset_api.core.security import decode_token
from alset_api.lib.property_cache import KeyedLockTable, PropertyRecordStore
from alset_api.lib.property_data import BasePropertyDataProvider, get_configured_provider
from alset_api.services.property_cache_service import PropertyDataCache

bearer_scheme = HTTPBearer(auto_error=False)

# Shared by every request in the process so refreshes of one address are serialized
_REFRESH_LOCKS = KeyedLockTable()


def get_refresh_locks() -> KeyedLockTable:
    return _REFRESH_LOCKS


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """Verify the bearer token issued by the auth provider and return its subject.

    Args:
        credentials: The bearer credentials from the Authorization header.
        settings: Application settings.

    Returns:
        The user id (``sub`` claim).

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired, or has no subject.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_token(
            credentials.credentials,
            settings.auth_jwt_secret,
            settings.auth_jwt_algorithm,
            settings.auth_jwt_audience,
        )
    except Exception as exc:
        raise credentials_exception from exc

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise credentials_exception
    return user_id


def get_property_provider(
    settings: Annotated[Settings, Depends(get_settings)],
) -> BasePropertyDataProvider:
    return get_configured_provider(settings)


async def get_property_cache(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    provider: Annotated[BasePropertyDataProvider, Depends(get_property_provider)],
    settings: Annotated[Settings, Depends(get_settings)],
    locks: Annotated[KeyedLockTable, Depends(get_refresh_locks)],
) -> PropertyDataCache:
    """Build a PropertyDataCache bound to the request's session."""
    return PropertyDataCache(
        PropertyRecordStore(session),
        provider,
        locks=locks,
        ttl=timedelta(hours=settings.property_cache_ttl_hours),
        provider_timeout=settings.property_provider_timeout,
    )
