"""Package updates inside a provisioned container."""

import logging
import os
import shutil
from typing import List

from pvelxc.providers.base import PackageUpdater
from pvelxc.utils.systemd import run_command


logger = logging.getLogger(__name__)


class SystemPackageUpdater(PackageUpdater):
    """Refreshes and upgrades packages with apt, or apk on Alpine."""

    def __init__(self):
        self.commands: List[List[str]] = []

    async def initialize(self, config, registry) -> None:
        if shutil.which("apt-get") is None and shutil.which("apk") is not None:
            self.commands = [["apk", "update"], ["apk", "upgrade"]]
        else:
            self.commands = [["apt-get", "update"], ["apt-get", "-y", "upgrade"]]

    async def update(self) -> None:
        env = dict(os.environ, DEBIAN_FRONTEND="noninteractive")
        for cmd in self.commands:
            logger.debug(f"Running {cmd[0]} {cmd[-1]}")
            await run_command(cmd, env=env)
