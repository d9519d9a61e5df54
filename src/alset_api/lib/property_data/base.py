"""Abstract property data provider interface."""

from abc import ABC, abstractmethod
from typing import Any


class PropertyDataProviderError(Exception):
    """Raised when a property data provider experiences a transport or service error.

    Covers timeouts, connection failures, non-2xx responses and unusable
    bodies.  The cache never stores anything when this is raised.

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


class BasePropertyDataProvider(ABC):
    """Abstract property data provider. All providers must implement this."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider."""

    @property
    def requires_api_key(self) -> bool:
        """Whether this provider requires an API key to function."""
        return False

    @property
    def is_configured(self) -> bool:
        """Whether this provider has all required configuration (e.g., API keys)."""
        return True

    @abstractmethod
    async def fetch_by_address(self, address: str) -> dict[str, Any]:
        """Fetch the provider's property payload for an address.

        Args:
            address: Freeform or normalized address string.

        Returns:
            The provider's JSON body, stored verbatim by the cache.

        Raises:
            PropertyDataProviderError: On transport or service errors.
        """
