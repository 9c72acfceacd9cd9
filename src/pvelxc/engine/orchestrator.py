"""Provisioning orchestration."""

import asyncio
import logging
import subprocess
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, List, Optional

import httpx

from pvelxc.engine import policy as device_policy
from pvelxc.engine.collector import DefaultCollector, InteractiveCollector
from pvelxc.engine.config import ConfigManager
from pvelxc.engine.errors import ErrorCategory, ExternalError, InputCancelled, PreflightError, ProvisionError
from pvelxc.engine.preflight import EnvironmentPreflight
from pvelxc.engine.prompts import PromptCancelled, Prompter
from pvelxc.engine.result import ProvisionResult
from pvelxc.models.application import ApplicationSpec, MINIMAL_BASE_DISTRIBUTIONS
from pvelxc.models.container import Configuration, CreateRequest, PrivilegeMode
from pvelxc.models.policy import DevicePolicy
from pvelxc.providers import ProviderRegistry
from pvelxc.utils.templates import render_template


logger = logging.getLogger(__name__)

# Failures of external calls that end a run as fatal-external; ValueError
# covers tool output that cannot be parsed
EXTERNAL_FAILURES = (
    subprocess.CalledProcessError,
    subprocess.TimeoutExpired,
    httpx.HTTPError,
    OSError,
    ValueError,
)


class ProvisionStep(str, Enum):
    """Provisioning steps in execution order."""
    PREFLIGHT = "preflight"
    ALLOCATE_ID = "allocate_id"
    RESOLVE_CONFIGURATION = "resolve_configuration"
    CREATE = "create"
    AUGMENT_DEVICES = "augment_devices"
    START = "start"
    INSTALL = "install"
    ANNOTATE = "annotate"


class CollectMode(str, Enum):
    """How the configuration is gathered."""
    DEFAULT = "default"
    ADVANCED = "advanced"


def describe_failure(error: Exception) -> str:
    """One-line description of a failed external call."""
    if isinstance(error, subprocess.CalledProcessError):
        detail = (error.stderr or "").strip().splitlines()
        suffix = f": {detail[-1]}" if detail else ""
        return f"command exited with code {error.returncode}{suffix}"
    if isinstance(error, subprocess.TimeoutExpired):
        return f"command timed out after {error.timeout}s"
    return str(error) or error.__class__.__name__


class ProvisioningOrchestrator:
    """Drives a container from preflight to annotation."""

    def __init__(
        self,
        config_manager: ConfigManager,
        provider_registry: ProviderRegistry,
        prompter: Prompter,
        bootstrap_delay: float = 2.0,
    ):
        self.config_manager = config_manager
        self.provider_registry = provider_registry
        self.prompter = prompter
        self.bootstrap_delay = bootstrap_delay

    def _provider(self, name: str):
        return self.provider_registry.require(name)

    async def _external(self, step: ProvisionStep, awaitable: Awaitable[Any]) -> Any:
        try:
            return await awaitable
        except EXTERNAL_FAILURES as e:
            raise ExternalError(f"{step.value} failed: {describe_failure(e)}", step.value) from e

    async def provision(self, app_name: str, mode: Optional[CollectMode] = None) -> ProvisionResult:
        """Provision a container for an application.

        Failures come back as a tagged result; nothing created before a
        failure is removed.
        """
        app = self.config_manager.get_application(app_name)
        result = ProvisionResult()
        step: Optional[ProvisionStep] = None
        monitor_stopped = False

        try:
            step = ProvisionStep.PREFLIGHT
            result.environment = await self._preflight()
            if result.environment.remote_session:
                result.warnings.append("Provisioning over a remote session")
            result.completed_steps.append(step.value)

            monitor_stopped = await self._pause_monitor(result)

            step = ProvisionStep.ALLOCATE_ID
            next_id = await self._external(step, self._provider("host").next_container_id())
            logger.debug(f"Next free container id: {next_id}")
            result.completed_steps.append(step.value)

            step = ProvisionStep.RESOLVE_CONFIGURATION
            config = self.resolve_configuration(app, next_id, mode)
            result.configuration = config
            if config.verbose:
                logging.getLogger("pvelxc").setLevel(logging.DEBUG)
            result.completed_steps.append(step.value)

            policy = device_policy.resolve(config.privilege, config.category, bool(config.overlay))

            step = ProvisionStep.CREATE
            await self._create(config, policy)
            result.completed_steps.append(step.value)

            step = ProvisionStep.AUGMENT_DEVICES
            if config.privilege == PrivilegeMode.PRIVILEGED:
                await self._external(step, self.augment_devices(config.ctid, policy))
                result.completed_steps.append(step.value)
            else:
                result.skipped_steps.append(step.value)

            step = ProvisionStep.START
            await self._start(config)
            result.completed_steps.append(step.value)

            step = ProvisionStep.INSTALL
            timezone = await self._external(step, self._provider("host").timezone())
            await self._external(step, self._provider("installer").install(config, timezone))
            result.completed_steps.append(step.value)

            step = ProvisionStep.ANNOTATE
            result.annotated = await self._annotate(config, result)
            if result.annotated:
                result.completed_steps.append(step.value)

            result.success = True
            logger.info(f"Provisioned {config.app} as container {config.ctid}")

        except ProvisionError as e:
            result.fail(e, step.value if step else None)
            if e.category == ErrorCategory.INPUT_CANCEL:
                logger.info(f"Provisioning cancelled: {e}")
            else:
                logger.error(f"Provisioning failed at {result.failed_step}: {e}")

        finally:
            await self._resume_monitor(monitor_stopped, result)

        return result

    async def _preflight(self):
        preflight = EnvironmentPreflight(self._provider("host"), self.config_manager.config.host)
        try:
            return await preflight.run(self.prompter)
        except EXTERNAL_FAILURES as e:
            raise PreflightError(f"Cannot inspect host platform: {describe_failure(e)}") from e

    def resolve_configuration(
        self, app: ApplicationSpec, next_id: int, mode: Optional[CollectMode] = None
    ) -> Configuration:
        """Collect the configuration with the requested collector."""
        defaults = self.config_manager.config.defaults
        if mode is None:
            try:
                use_defaults = self.prompter.confirm("SETTINGS", "Use Default Settings?", default=True)
            except PromptCancelled as e:
                raise InputCancelled("User exited script") from e
            mode = CollectMode.DEFAULT if use_defaults else CollectMode.ADVANCED

        if mode == CollectMode.DEFAULT:
            return DefaultCollector(defaults).collect(app, next_id)
        return InteractiveCollector(self.prompter, defaults).collect(app, next_id)

    async def _create(self, config: Configuration, policy: DevicePolicy) -> None:
        request = CreateRequest.from_configuration(
            config, policy.features, self.config_manager.config.defaults.tags
        )
        logger.debug(f"Creation features: {','.join(request.features)}; net0: {request.interfaces[0]}")
        await self._external(ProvisionStep.CREATE, self._provider("creator").create(config, request))

    async def augment_devices(self, ctid: int, policy: DevicePolicy) -> List[str]:
        """Append device rules missing from the container's config.

        Returns the lines that were appended; lines already present are
        not written again.
        """
        lines = policy.config_lines()
        if not lines:
            return []
        store = self._provider("config_store")
        existing = {line.strip() for line in await store.read_lines(ctid)}
        missing = [line for line in lines if line.strip() not in existing]
        if missing:
            await store.append_lines(ctid, missing)
            logger.info(f"Added {len(missing)} device rules to container {ctid}")
        else:
            logger.info(f"Device rules already present for container {ctid}")
        return missing

    async def augment_application(
        self, ctid: int, app_name: str, privilege: PrivilegeMode, overlay: bool = False
    ) -> List[str]:
        """Re-apply the device policy of an application to an existing container."""
        app = self.config_manager.get_application(app_name)
        policy = device_policy.resolve(privilege, app.category, overlay)
        return await self._external(ProvisionStep.AUGMENT_DEVICES, self.augment_devices(ctid, policy))

    async def _start(self, config: Configuration) -> None:
        lifecycle = self._provider("lifecycle")
        await self._external(ProvisionStep.START, lifecycle.start(config.ctid))
        if config.os_type in MINIMAL_BASE_DISTRIBUTIONS:
            await asyncio.sleep(self.bootstrap_delay)
            logger.info(f"Installing bash in container {config.ctid}")
            await self._external(
                ProvisionStep.START,
                lifecycle.execute(config.ctid, ["ash", "-c", "apk add bash >/dev/null"]),
            )

    async def _annotate(self, config: Configuration, result: ProvisionResult) -> bool:
        """Set the container description; failures only warn."""
        lifecycle = self._provider("lifecycle")
        defaults = self.config_manager.config.defaults
        try:
            address = await lifecycle.primary_address(config.ctid)
            description = render_template(
                defaults.description_template,
                app=config.app,
                link=defaults.description_link,
                address=address,
                config=config,
            )
            await lifecycle.set_description(config.ctid, description)
            return True
        except Exception as e:
            message = f"Could not set description on container {config.ctid}: {e}"
            logger.warning(message)
            result.warnings.append(message)
            return False

    async def _pause_monitor(self, result: ProvisionResult) -> bool:
        """Stop the host monitor unit while provisioning."""
        services = self.provider_registry.get_provider("services")
        unit = self.config_manager.config.host.monitor_unit
        if services is None or not unit:
            return False
        try:
            if await services.is_active(unit):
                await services.stop(unit)
                logger.info(f"Stopped {unit} during provisioning")
                return True
        except Exception as e:
            message = f"Could not stop {unit}: {e}"
            logger.warning(message)
            result.warnings.append(message)
        return False

    async def _resume_monitor(self, stopped: bool, result: ProvisionResult) -> None:
        """Start the host monitor unit again if it was stopped or is installed."""
        services = self.provider_registry.get_provider("services")
        host = self.config_manager.config.host
        if services is None or not host.monitor_unit:
            return
        unit_file = Path(host.monitor_unit_file)
        if not stopped and not (result.success and await asyncio.to_thread(unit_file.exists)):
            return
        try:
            await services.start(host.monitor_unit)
            logger.debug(f"Started {host.monitor_unit}")
        except Exception as e:
            message = f"Could not start {host.monitor_unit}: {e}"
            logger.warning(message)
            result.warnings.append(message)
