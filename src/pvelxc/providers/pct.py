"""Container lifecycle and persisted config through pct."""

import asyncio
import logging
import re
from pathlib import Path
from typing import List, Optional

from pvelxc.providers.base import ContainerConfigStore, ContainerLifecycle
from pvelxc.utils.systemd import run_command


logger = logging.getLogger(__name__)

INET_ADDRESS = re.compile(r"inet (\d+\.\d+\.\d+\.\d+)/")


class PctLifecycle(ContainerLifecycle):
    """Lifecycle commands issued with ``pct``."""

    async def initialize(self, config, registry) -> None:
        pass

    async def start(self, ctid: int) -> None:
        logger.info(f"Starting container {ctid}")
        await run_command(["pct", "start", str(ctid)], timeout=120)

    async def execute(self, ctid: int, command: List[str]) -> str:
        result = await run_command(["pct", "exec", str(ctid), "--", *command])
        return result.stdout

    async def set_description(self, ctid: int, description: str) -> None:
        await run_command(["pct", "set", str(ctid), "-description", description])
        logger.debug(f"Set description on container {ctid}")

    async def primary_address(self, ctid: int) -> Optional[str]:
        result = await run_command(
            ["pct", "exec", str(ctid), "--", "ip", "-4", "addr", "show", "dev", "eth0"],
            check=False,
        )
        if result.returncode != 0:
            return None
        match = INET_ADDRESS.search(result.stdout)
        return match.group(1) if match else None


class PctConfigStore(ContainerConfigStore):
    """Container config files under /etc/pve/lxc."""

    def __init__(self):
        self.config_dir: Optional[Path] = None

    async def initialize(self, config, registry) -> None:
        self.config_dir = Path(config.host.lxc_config_dir)

    def path_for(self, ctid: int) -> Path:
        return self.config_dir / f"{ctid}.conf"

    async def read_lines(self, ctid: int) -> List[str]:
        path = self.path_for(ctid)
        content = await asyncio.to_thread(path.read_text)
        return content.splitlines()

    async def append_lines(self, ctid: int, lines: List[str]) -> None:
        path = self.path_for(ctid)
        await asyncio.to_thread(self._append, path, lines)
        logger.debug(f"Appended {len(lines)} lines to {path}")

    @staticmethod
    def _append(path: Path, lines: List[str]) -> None:
        existing = path.read_text() if path.exists() else ""
        with path.open("a") as handle:
            if existing and not existing.endswith("\n"):
                handle.write("\n")
            handle.write("".join(f"{line}\n" for line in lines))
