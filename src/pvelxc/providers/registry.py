"""Named providers shared by the orchestrators."""

import logging
from typing import Dict, List, Mapping, Optional, Type

from pvelxc.providers.base import BaseProvider
from pvelxc.providers.host import ProxmoxHost, SystemdServices
from pvelxc.providers.pct import PctConfigStore, PctLifecycle
from pvelxc.providers.scripts import ScriptApplicationInstaller, ScriptContainerCreator
from pvelxc.providers.updater import SystemPackageUpdater


logger = logging.getLogger(__name__)

DEFAULT_PROVIDERS: Dict[str, Type[BaseProvider]] = {
    "host": ProxmoxHost,
    "services": SystemdServices,
    "creator": ScriptContainerCreator,
    "config_store": PctConfigStore,
    "lifecycle": PctLifecycle,
    "installer": ScriptApplicationInstaller,
    "updater": SystemPackageUpdater,
}


class ProviderNotFound(LookupError):
    """No provider is registered under the requested name."""


class ProviderRegistry:
    """Creates, initializes and hands out providers by name.

    Providers passed to ``register`` before ``initialize`` replace the
    default class for that name.
    """

    def __init__(self, provider_classes: Optional[Mapping[str, Type[BaseProvider]]] = None):
        self._classes = dict(DEFAULT_PROVIDERS if provider_classes is None else provider_classes)
        self._providers: Dict[str, BaseProvider] = {}

    def register(self, name: str, provider: BaseProvider) -> None:
        self._providers[name] = provider

    async def initialize(self, config):
        """Instantiate unregistered defaults, then initialize every provider."""
        for name, provider_class in self._classes.items():
            self._providers.setdefault(name, provider_class())

        for name, provider in self._providers.items():
            try:
                await provider.initialize(config, self)
            except Exception as e:
                logger.error(f"Provider {name} failed to initialize: {e}")
                raise
            logger.debug(f"Provider {name} ready ({type(provider).__name__})")

    async def close(self):
        """Close providers in reverse order; failures are only logged."""
        for name, provider in reversed(list(self._providers.items())):
            try:
                await provider.close()
            except Exception as e:
                logger.warning(f"Provider {name} failed to close: {e}")

    def get_provider(self, name: str) -> Optional[BaseProvider]:
        return self._providers.get(name)

    def require(self, name: str) -> BaseProvider:
        """Like ``get_provider`` but raises ProviderNotFound."""
        provider = self._providers.get(name)
        if provider is None:
            raise ProviderNotFound(f"Provider {name} not available")
        return provider

    def list_providers(self) -> List[str]:
        return list(self._providers)
