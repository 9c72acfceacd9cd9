"""Subprocess execution and systemd unit control."""

import asyncio
import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from dbus_next import BusType
from dbus_next.aio import MessageBus
from dbus_next.errors import DBusError


logger = logging.getLogger(__name__)

SYSTEMD_BUS_NAME = "org.freedesktop.systemd1"
SYSTEMD_OBJECT_PATH = "/org/freedesktop/systemd1"

# Arguments longer than this are summarized in debug logs
MAX_LOGGED_ARG = 120


@dataclass
class CommandResult:
    """Exit status and decoded output of a finished command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""


def _loggable(cmd: List[str]) -> str:
    # Inline scripts and large variables stay out of the log
    parts = []
    for index, arg in enumerate(cmd):
        flag = cmd[index - 1] if index else ""
        if len(arg) <= MAX_LOGGED_ARG:
            parts.append(shlex.quote(arg))
        elif flag == "-c":
            parts.append(f"<script {len(arg)} bytes>")
        elif flag == "--set-var":
            parts.append(f"{arg.split('=', 1)[0]}=<{len(arg)} bytes>")
        else:
            parts.append(shlex.quote(arg))
    return " ".join(parts)


def _decode(data: Optional[bytes]) -> str:
    return data.decode(errors="replace") if data else ""


async def run_command(
    cmd: List[str],
    check: bool = True,
    capture_output: bool = True,
    timeout: Optional[float] = None,
    **kwargs
) -> CommandResult:
    """Run a command and wait for it to finish.

    With ``check`` a non-zero exit raises CalledProcessError carrying the
    captured output. Exceeding ``timeout`` kills the process and raises
    TimeoutExpired. Without ``capture_output`` the command writes straight
    to the terminal.
    """
    logger.debug(f"$ {_loggable(cmd)}")
    pipe = asyncio.subprocess.PIPE if capture_output else None
    process = await asyncio.create_subprocess_exec(*cmd, stdout=pipe, stderr=pipe, **kwargs)

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise subprocess.TimeoutExpired(cmd, timeout) from None

    result = CommandResult(process.returncode, _decode(stdout), _decode(stderr))
    if check and result.returncode != 0:
        logger.debug(f"{cmd[0]} exited with {result.returncode}")
        raise subprocess.CalledProcessError(
            result.returncode, cmd, output=result.stdout, stderr=result.stderr
        )
    return result


class SystemdDBus:
    """systemd manager on the system bus, with systemctl as fallback."""

    def __init__(self):
        self.bus: Optional[MessageBus] = None
        self.manager = None

    async def connect(self):
        """Connect to the system bus.

        Failure is not fatal; every call then goes through systemctl.
        """
        try:
            self.bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
            introspection = await self.bus.introspect(SYSTEMD_BUS_NAME, SYSTEMD_OBJECT_PATH)
            proxy = self.bus.get_proxy_object(SYSTEMD_BUS_NAME, SYSTEMD_OBJECT_PATH, introspection)
            self.manager = proxy.get_interface("org.freedesktop.systemd1.Manager")
        except Exception as e:
            logger.warning(f"systemd bus unavailable, using systemctl: {e}")
            await self.disconnect()
            return
        logger.debug("Connected to the systemd manager")

    async def disconnect(self):
        if self.bus is not None:
            self.bus.disconnect()
        self.bus = None
        self.manager = None

    async def _unit_job(self, verb: str, unit: str):
        if self.manager is not None:
            try:
                await getattr(self.manager, f"call_{verb}_unit")(unit, "replace")
                logger.debug(f"Queued {verb} of {unit}")
                return
            except DBusError as e:
                logger.warning(f"DBus {verb} of {unit} failed, retrying with systemctl: {e}")
        await run_command(["systemctl", verb, unit])

    async def start_unit(self, unit: str):
        await self._unit_job("start", unit)

    async def stop_unit(self, unit: str):
        await self._unit_job("stop", unit)

    async def get_unit_state(self, unit: str) -> str:
        """ActiveState of a unit, e.g. 'active' or 'inactive'."""
        if self.manager is not None:
            try:
                # LoadUnit also answers for units that are not currently loaded
                unit_path = await self.manager.call_load_unit(unit)
                introspection = await self.bus.introspect(SYSTEMD_BUS_NAME, unit_path)
                properties = self.bus.get_proxy_object(
                    SYSTEMD_BUS_NAME, unit_path, introspection
                ).get_interface("org.freedesktop.DBus.Properties")
                state = await properties.call_get("org.freedesktop.systemd1.Unit", "ActiveState")
                return state.value
            except DBusError as e:
                logger.debug(f"Cannot read state of {unit} over DBus: {e}")

        result = await run_command(["systemctl", "is-active", unit], check=False)
        return result.stdout.strip()
