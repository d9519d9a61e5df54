"""Zillow property data provider via RapidAPI.

Calls the ``search_address`` endpoint of the Zillow API published on
RapidAPI (https://rapidapi.com/) and returns the raw JSON body.
"""

from typing import Any

import httpx
from loguru import logger

from alset_api.lib.property_data.base import BasePropertyDataProvider, PropertyDataProviderError

DEFAULT_HOST = "zillow56.p.rapidapi.com"
SEARCH_ADDRESS_PATH = "/search_address"
DEFAULT_TIMEOUT = 10.0
USER_AGENT = "AlsetMaps/1.0"


class ZillowProvider(BasePropertyDataProvider):
    """Zillow search-by-address provider."""

    def __init__(
        self,
        api_key: str,
        host: str = DEFAULT_HOST,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        self._host = host
        self._timeout = timeout

    @property
    def provider_name(self) -> str:
        return "zillow"

    @property
    def requires_api_key(self) -> bool:
        return True

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def search_url(self) -> str:
        return f"https://{self._host}{SEARCH_ADDRESS_PATH}"

    async def fetch_by_address(self, address: str) -> dict[str, Any]:
        """Look up a property on Zillow by address.

        Args:
            address: Address string to search for.

        Returns:
            Raw Zillow JSON body.

        Raises:
            PropertyDataProviderError: On missing key, transport or service errors.
        """
        if not self.is_configured:
            raise PropertyDataProviderError(self.provider_name, "RapidAPI key is not configured")

        headers = {
            "x-rapidapi-host": self._host,
            "x-rapidapi-key": self._api_key,
            "User-Agent": USER_AGENT,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self.search_url, params={"address": address}, headers=headers)
                response.raise_for_status()

            return self._parse_response(response)

        except httpx.TimeoutException as e:
            logger.warning("Zillow provider timeout")
            raise PropertyDataProviderError(self.provider_name, "Property data request timed out") from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.warning(f"Zillow provider HTTP error {status_code}")
            if status_code == 429:
                raise PropertyDataProviderError(
                    self.provider_name,
                    "Rate limit exceeded. Please try again in a few minutes.",
                    status_code=status_code,
                ) from e
            raise PropertyDataProviderError(
                self.provider_name,
                f"Provider returned HTTP {status_code}",
                status_code=status_code,
            ) from e
        except httpx.ConnectError as e:
            logger.warning("Zillow provider connection error")
            raise PropertyDataProviderError(self.provider_name, "Connection to property data provider failed") from e
        except PropertyDataProviderError:
            raise
        except Exception as e:
            logger.exception("Zillow provider unexpected error")
            raise PropertyDataProviderError(self.provider_name, f"Unexpected error: {e}") from e

    def _parse_response(self, response: httpx.Response) -> dict[str, Any]:
        """Validate the response body and return it unchanged."""
        try:
            data = response.json()
        except ValueError as e:
            raise PropertyDataProviderError(self.provider_name, "Provider returned a non-JSON body") from e

        if not isinstance(data, dict):
            raise PropertyDataProviderError(self.provider_name, "Provider returned an unexpected body shape")

        if data.get("error"):
            raise PropertyDataProviderError(self.provider_name, f"Provider returned error: {data['error']}")

        return data
