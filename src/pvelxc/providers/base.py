"""Provider interfaces for the external collaborators."""

from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING

from pvelxc.models.config import ToolConfig
from pvelxc.models.container import Configuration, CreateRequest

if TYPE_CHECKING:
    from pvelxc.providers.registry import ProviderRegistry


class BaseProvider(ABC):
    """Base provider interface that all providers must implement."""

    @abstractmethod
    async def initialize(self, config: ToolConfig, registry: "ProviderRegistry") -> None:
        """Initialize the provider with configuration."""
        pass

    async def close(self) -> None:
        """Release resources held by the provider."""
        pass


class HostPlatform(BaseProvider):
    """Queries about the hypervisor host and the calling session."""

    @abstractmethod
    async def is_hypervisor(self) -> bool:
        """Whether this process runs on a hypervisor host."""

    @abstractmethod
    async def platform_version(self) -> str:
        """Platform version string, e.g. 'pve-manager/7.2-3/...'."""

    @abstractmethod
    async def architecture(self) -> str:
        """CPU architecture as reported by the package manager."""

    @abstractmethod
    async def is_remote_session(self) -> bool:
        """Whether the operator is connected remotely."""

    @abstractmethod
    async def next_container_id(self) -> int:
        """Next free id from the cluster allocator."""

    @abstractmethod
    async def timezone(self) -> str:
        """Host timezone name."""


class ContainerCreator(BaseProvider):
    """Creates the container and its persisted configuration."""

    @abstractmethod
    async def create(self, config: Configuration, request: CreateRequest) -> None:
        pass


class ContainerConfigStore(BaseProvider):
    """Line-oriented persisted container configuration."""

    @abstractmethod
    async def read_lines(self, ctid: int) -> List[str]:
        pass

    @abstractmethod
    async def append_lines(self, ctid: int, lines: List[str]) -> None:
        pass


class ContainerLifecycle(BaseProvider):
    """Lifecycle commands for an existing container."""

    @abstractmethod
    async def start(self, ctid: int) -> None:
        pass

    @abstractmethod
    async def execute(self, ctid: int, command: List[str]) -> str:
        """Run a command inside the container and return its stdout."""

    @abstractmethod
    async def set_description(self, ctid: int, description: str) -> None:
        pass

    @abstractmethod
    async def primary_address(self, ctid: int) -> Optional[str]:
        """IPv4 address of eth0, if any."""


class ApplicationInstaller(BaseProvider):
    """Runs the per-application installer inside a running container."""

    @abstractmethod
    async def install(self, config: Configuration, timezone: str) -> None:
        pass


class PackageUpdater(BaseProvider):
    """Refreshes the package index and upgrades installed packages."""

    @abstractmethod
    async def update(self) -> None:
        pass


class HostServices(BaseProvider):
    """Control of host service units."""

    @abstractmethod
    async def is_active(self, unit: str) -> bool:
        pass

    @abstractmethod
    async def start(self, unit: str) -> None:
        pass

    @abstractmethod
    async def stop(self, unit: str) -> None:
        pass
