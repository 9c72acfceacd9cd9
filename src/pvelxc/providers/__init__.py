"""Providers for the host, container and installer collaborators."""

from pvelxc.providers.base import (
    BaseProvider,
    HostPlatform,
    HostServices,
    ContainerCreator,
    ContainerConfigStore,
    ContainerLifecycle,
    ApplicationInstaller,
    PackageUpdater,
)
from pvelxc.providers.registry import ProviderNotFound, ProviderRegistry

__all__ = [
    "BaseProvider",
    "HostPlatform",
    "HostServices",
    "ContainerCreator",
    "ContainerConfigStore",
    "ContainerLifecycle",
    "ApplicationInstaller",
    "PackageUpdater",
    "ProviderNotFound",
    "ProviderRegistry",
]
