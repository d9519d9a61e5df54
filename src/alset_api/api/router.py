"""Root API router and middleware registration."""

from fastapi import APIRouter, FastAPI

from alset_api.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware, setup_cors
from alset_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the versioned API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Router mounted at ``settings.api_v1_prefix``.
    """
    from alset_api.api.v1.credits import credits_router
    from alset_api.api.v1.health import health_router
    from alset_api.api.v1.pins import pins_router
    from alset_api.api.v1.properties import properties_router
    from alset_api.api.v1.search_history import search_history_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(health_router)
    root_router.include_router(properties_router)
    root_router.include_router(pins_router)
    root_router.include_router(credits_router)
    root_router.include_router(search_history_router)
    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register CORS, security header, and rate limit middleware."""
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )
