"""Creation and installation through the remote helper scripts."""

import logging
import os
from typing import Dict, List, Optional

import httpx

from pvelxc.models.application import AppCategory
from pvelxc.models.config import ScriptsConfig
from pvelxc.models.container import Configuration, CreateRequest
from pvelxc.providers.base import ApplicationInstaller, ContainerCreator
from pvelxc.utils.systemd import run_command


logger = logging.getLogger(__name__)


def _yes_no(value: Optional[bool]) -> str:
    return "yes" if value else "no"


def installer_environment(config: Configuration, timezone: str) -> Dict[str, str]:
    """Named variables handed to the in-container installer."""
    env = {
        "APPLICATION": config.app,
        "PCT_OSTYPE": config.os_type,
        "PCT_OSVERSION": config.os_version,
        "PASSWORD": config.password or "",
        "VERBOSE": _yes_no(config.verbose),
        "SSH_ROOT": _yes_no(config.ssh_root),
        "DISABLEIPV6": _yes_no(config.disable_ipv6),
        "CTTYPE": config.privilege.unprivileged_flag,
        "CTID": str(config.ctid),
        "tz": timezone,
    }
    if config.category == AppCategory.CONTAINER_HOST:
        env["ST"] = _yes_no(config.overlay)
    return env


def creation_environment(request: CreateRequest) -> Dict[str, str]:
    """Variables read by the container creation script."""
    return {
        "CTID": str(request.ctid),
        "CTTYPE": request.privilege.unprivileged_flag,
        "PCT_OSTYPE": request.os_type,
        "PCT_OSVERSION": request.os_version,
        "PCT_DISK_SIZE": request.disk_size,
        "PCT_OPTIONS": " ".join(request.pct_options()),
    }


class ScriptFetcher:
    """Downloads helper scripts."""

    def __init__(self, scripts: ScriptsConfig):
        self.scripts = scripts

    async def fetch(self, path: str) -> str:
        url = self.scripts.url(path)
        logger.debug(f"Fetching {url}")
        async with httpx.AsyncClient(timeout=self.scripts.timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.text


class ScriptContainerCreator(ContainerCreator):
    """Runs the remote creation script on the host."""

    def __init__(self):
        self.fetcher: Optional[ScriptFetcher] = None

    async def initialize(self, config, registry) -> None:
        self.fetcher = ScriptFetcher(config.scripts)

    async def create(self, config: Configuration, request: CreateRequest) -> None:
        script = await self.fetcher.fetch(self.fetcher.scripts.create_script)
        env = dict(os.environ)
        env.update(installer_environment(config, timezone=""))
        env.update(creation_environment(request))

        logger.info(f"Creating container {request.ctid} ({request.os_type} {request.os_version})")
        await run_command(
            ["bash", "-c", script],
            capture_output=not config.verbose,
            env=env,
        )


class ScriptApplicationInstaller(ApplicationInstaller):
    """Runs the per-application install script inside the container."""

    def __init__(self):
        self.fetcher: Optional[ScriptFetcher] = None

    async def initialize(self, config, registry) -> None:
        self.fetcher = ScriptFetcher(config.scripts)

    def _functions_path(self, os_type: str) -> str:
        if os_type == "alpine":
            return self.fetcher.scripts.alpine_functions_file
        return self.fetcher.scripts.functions_file

    async def install(self, config: Configuration, timezone: str) -> None:
        scripts = self.fetcher.scripts
        functions = await self.fetcher.fetch(self._functions_path(config.os_type))
        script = await self.fetcher.fetch(scripts.install_script.format(name=config.short_name))

        variables = installer_environment(config, timezone)
        variables["FUNCTIONS_FILE_PATH"] = functions
        # The password travels in the environment, not on the command line
        env = dict(os.environ, PASSWORD=variables.pop("PASSWORD"))

        cmd: List[str] = ["lxc-attach", "-n", str(config.ctid), "--keep-var", "PASSWORD"]
        for name, value in variables.items():
            cmd += ["--set-var", f"{name}={value}"]
        cmd += ["--", "bash", "-c", script]

        logger.info(f"Installing {config.app} in container {config.ctid}")
        await run_command(cmd, capture_output=not config.verbose, env=env)
