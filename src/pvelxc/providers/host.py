"""Proxmox host queries and host service control."""

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from pvelxc.providers.base import HostPlatform, HostServices
from pvelxc.utils.systemd import run_command, SystemdDBus


logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Etc/UTC"


class ProxmoxHost(HostPlatform):
    """Host platform backed by the Proxmox command-line tools."""

    def __init__(self):
        self.timezone_file: Optional[Path] = None

    async def initialize(self, config, registry) -> None:
        self.timezone_file = Path(config.host.timezone_file)

    async def is_hypervisor(self) -> bool:
        return shutil.which("pveversion") is not None

    async def platform_version(self) -> str:
        result = await run_command(["pveversion"])
        return result.stdout.strip()

    async def architecture(self) -> str:
        result = await run_command(["dpkg", "--print-architecture"])
        return result.stdout.strip()

    async def is_remote_session(self) -> bool:
        return bool(os.environ.get("SSH_CLIENT"))

    async def next_container_id(self) -> int:
        result = await run_command(["pvesh", "get", "/cluster/nextid"])
        output = result.stdout.strip().strip('"')
        try:
            return int(output)
        except ValueError as e:
            raise ValueError(f"pvesh returned no container id: {output!r}") from e

    async def timezone(self) -> str:
        try:
            content = await asyncio.to_thread(self.timezone_file.read_text)
        except OSError as e:
            logger.warning(f"Cannot read {self.timezone_file}, using {DEFAULT_TIMEZONE}: {e}")
            return DEFAULT_TIMEZONE
        return content.strip() or DEFAULT_TIMEZONE


class SystemdServices(HostServices):
    """Host service control over systemd."""

    def __init__(self):
        self.systemd_dbus = SystemdDBus()

    async def initialize(self, config, registry) -> None:
        await self.systemd_dbus.connect()

    async def close(self) -> None:
        await self.systemd_dbus.disconnect()

    async def is_active(self, unit: str) -> bool:
        return await self.systemd_dbus.get_unit_state(unit) == "active"

    async def start(self, unit: str) -> None:
        await self.systemd_dbus.start_unit(unit)

    async def stop(self, unit: str) -> None:
        await self.systemd_dbus.stop_unit(unit)
