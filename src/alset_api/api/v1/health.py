"""Liveness endpoint."""

from fastapi import APIRouter

health_router = APIRouter(tags=["health"])


@health_router.get("/health", status_code=200)
async def health_check() -> dict:
    """Report that the process is up. Does not touch the database or provider."""
    return {"status": "healthy"}
