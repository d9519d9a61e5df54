"""Unit tests for the property data provider registry."""

import pytest

from alset_api.core.config import Settings
from alset_api.lib.property_data import ZillowProvider, get_available_providers, get_configured_provider, get_provider


class TestProviderRegistry:
    """Tests for get_provider and get_configured_provider."""

    def test_available_providers(self) -> None:
        assert get_available_providers() == ["zillow"]

    def test_get_provider_by_name(self) -> None:
        provider = get_provider("zillow", api_key="key", timeout=2.0)
        assert isinstance(provider, ZillowProvider)

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown property data provider"):
            get_provider("redfin")

    def test_configured_provider_from_settings(self, settings: Settings) -> None:
        provider = get_configured_provider(settings)
        assert isinstance(provider, ZillowProvider)
        assert provider.is_configured is True

    def test_unconfigured_provider_still_returned(self, settings: Settings) -> None:
        settings.rapidapi_key = None
        provider = get_configured_provider(settings)
        assert provider.is_configured is False

    def test_unknown_configured_provider_raises(self, settings: Settings) -> None:
        settings.property_provider = "redfin"
        with pytest.raises(ValueError, match="redfin"):
            get_configured_provider(settings)
