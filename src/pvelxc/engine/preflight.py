"""Host checks performed before anything is created."""

import logging
import re
from typing import Optional

from pvelxc.engine.errors import InputCancelled, PreflightError
from pvelxc.engine.prompts import PromptCancelled, Prompter
from pvelxc.models.config import HostConfig
from pvelxc.models.host import EnvironmentCheck
from pvelxc.providers.base import HostPlatform


logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"(?:pve-manager/)?(\d+)\.(\d+)")


def parse_major_version(version: str) -> Optional[int]:
    """Major version from 'pve-manager/7.2-3/...' or a bare '7.2'."""
    match = VERSION_PATTERN.search(version)
    return int(match.group(1)) if match else None


class EnvironmentPreflight:
    """Checks platform version, architecture and session type."""

    def __init__(self, host: HostPlatform, host_config: HostConfig):
        self.host = host
        self.host_config = host_config

    def evaluate(self, version: str, architecture: str, remote_session: bool) -> EnvironmentCheck:
        major = parse_major_version(version)
        return EnvironmentCheck(
            version=version,
            architecture=architecture,
            version_supported=major is not None and major in self.host_config.supported_major_versions,
            arch_supported=architecture in self.host_config.supported_architectures,
            remote_session=remote_session,
        )

    async def check(self) -> EnvironmentCheck:
        """Query the host and evaluate the result."""
        version = await self.host.platform_version()
        architecture = await self.host.architecture()
        remote = await self.host.is_remote_session()
        result = self.evaluate(version, architecture, remote)
        logger.debug(f"Preflight: {result}")
        return result

    async def run(self, prompter: Prompter) -> EnvironmentCheck:
        """Check the host and stop unless provisioning may proceed."""
        result = await self.check()

        if not result.version_supported:
            supported = ", ".join(f"{major}.x" for major in self.host_config.supported_major_versions)
            raise PreflightError(
                f"Proxmox VE version '{result.version}' is not supported (requires {supported})"
            )
        if not result.arch_supported:
            raise PreflightError(
                f"Architecture '{result.architecture}' is not supported "
                f"(requires {', '.join(self.host_config.supported_architectures)})"
            )

        if result.remote_session:
            logger.warning("Remote session detected")
            try:
                proceed = prompter.confirm(
                    "SSH DETECTED",
                    "It's suggested to use the Proxmox shell instead of SSH, since SSH can "
                    "create issues while gathering variables. Proceed using SSH?",
                    default=False,
                )
            except PromptCancelled as e:
                raise InputCancelled("Cancelled at remote session warning") from e
            if not proceed:
                raise InputCancelled("Declined to continue over a remote session")

        return result
