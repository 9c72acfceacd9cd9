"""Tests for the provider registry."""

import pytest
from unittest.mock import AsyncMock, Mock

from pvelxc.providers.base import BaseProvider
from pvelxc.providers.registry import DEFAULT_PROVIDERS, ProviderNotFound, ProviderRegistry


class RecordingProvider(BaseProvider):
    """Provider that records its lifecycle calls."""

    events = []

    def __init__(self):
        self.config = None
        self.registry = None

    async def initialize(self, config, registry):
        self.config = config
        self.registry = registry
        self.events.append(("init", self))

    async def close(self):
        self.events.append(("close", self))


@pytest.fixture(autouse=True)
def clear_events():
    RecordingProvider.events = []


class TestProviderRegistry:
    """Test provider creation, lookup and shutdown."""

    def test_defaults_cover_every_role(self):
        assert set(DEFAULT_PROVIDERS) == {
            "host", "services", "creator", "config_store", "lifecycle", "installer", "updater",
        }
        assert ProviderRegistry().list_providers() == []

    @pytest.mark.asyncio
    async def test_initialize_passes_config_and_registry(self):
        config = Mock()
        registry = ProviderRegistry({"host": RecordingProvider})

        await registry.initialize(config)

        host = registry.require("host")
        assert isinstance(host, RecordingProvider)
        assert host.config is config
        assert host.registry is registry

    @pytest.mark.asyncio
    async def test_registered_instance_wins_over_default_class(self):
        registry = ProviderRegistry({"host": RecordingProvider, "lifecycle": RecordingProvider})
        fake_host = AsyncMock()
        registry.register("host", fake_host)

        await registry.initialize(Mock())

        assert registry.get_provider("host") is fake_host
        fake_host.initialize.assert_awaited_once()
        assert isinstance(registry.get_provider("lifecycle"), RecordingProvider)
        assert registry.list_providers() == ["host", "lifecycle"]

    @pytest.mark.asyncio
    async def test_initialize_failure_is_raised(self):
        registry = ProviderRegistry({})
        broken = AsyncMock()
        broken.initialize.side_effect = OSError("pct not found")
        registry.register("lifecycle", broken)

        with pytest.raises(OSError, match="pct not found"):
            await registry.initialize(Mock())

    @pytest.mark.asyncio
    async def test_close_runs_in_reverse_and_survives_errors(self):
        registry = ProviderRegistry({})
        first, last = RecordingProvider(), RecordingProvider()
        broken = AsyncMock()
        broken.close.side_effect = ConnectionError("bus gone")
        registry.register("host", first)
        registry.register("services", broken)
        registry.register("lifecycle", last)

        await registry.close()

        assert RecordingProvider.events == [("close", last), ("close", first)]

    def test_lookup_of_unknown_name(self):
        registry = ProviderRegistry({})

        assert registry.get_provider("updater") is None
        with pytest.raises(ProviderNotFound, match="updater"):
            registry.require("updater")
