"""Property data library: third-party property payload providers.

Public API:
    - BasePropertyDataProvider: Abstract provider interface
    - PropertyDataProviderError: Transport/service failure
    - ZillowProvider: Zillow via RapidAPI
    - PropertySummary / summarize_payload: Well-known field extraction
    - get_provider: Provider factory/registry
    - get_configured_provider: Provider built from application settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from alset_api.lib.property_data.base import BasePropertyDataProvider, PropertyDataProviderError
from alset_api.lib.property_data.summary import PropertySummary, summarize_payload
from alset_api.lib.property_data.zillow import ZillowProvider

if TYPE_CHECKING:
    from alset_api.core.config import Settings

_PROVIDERS: dict[str, type[BasePropertyDataProvider]] = {
    "zillow": ZillowProvider,
}


def get_available_providers() -> list[str]:
    """Return the names of all registered property data providers."""
    return sorted(_PROVIDERS.keys())


def get_provider(provider: str = "zillow", **kwargs: Any) -> BasePropertyDataProvider:
    """Get a property data provider instance by name.

    Args:
        provider: Provider name (e.g., "zillow").
        **kwargs: Forwarded to the provider constructor (e.g., ``timeout=5.0``).

    Returns:
        An instance of the requested provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    cls = _PROVIDERS.get(provider)
    if cls is None:
        msg = f"Unknown property data provider: {provider!r}. Available: {get_available_providers()}"
        raise ValueError(msg)
    return cls(**kwargs)


def get_configured_provider(settings: Settings) -> BasePropertyDataProvider:
    """Build the provider named by ``settings.property_provider``.

    An unconfigured provider is still returned so cached records keep being
    served; every refresh attempt then fails with PropertyDataProviderError.

    Args:
        settings: Application settings.

    Returns:
        The provider instance.

    Raises:
        ValueError: If the configured provider name is unknown.
    """
    provider_kwargs: dict[str, dict[str, Any]] = {
        "zillow": {
            "api_key": settings.rapidapi_key or "",
            "host": settings.rapidapi_zillow_host,
            "timeout": settings.property_provider_timeout,
        },
    }
    provider = get_provider(settings.property_provider, **provider_kwargs.get(settings.property_provider, {}))
    if not provider.is_configured:
        logger.warning(f"Property data provider {provider.provider_name!r} is not configured; refreshes will fail")
    return provider


__all__ = [
    "BasePropertyDataProvider",
    "PropertyDataProviderError",
    "PropertySummary",
    "ZillowProvider",
    "get_available_providers",
    "get_configured_provider",
    "get_provider",
    "summarize_payload",
]
