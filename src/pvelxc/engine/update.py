"""In-container update flow."""

import asyncio
import logging
from enum import Enum
from pathlib import Path

from pvelxc.engine.config import ConfigManager
from pvelxc.engine.errors import ErrorCategory, ExternalError, InputCancelled, PreflightError, ProvisionError
from pvelxc.engine.orchestrator import EXTERNAL_FAILURES, describe_failure
from pvelxc.engine.prompts import PromptCancelled, Prompter
from pvelxc.engine.result import ProvisionResult
from pvelxc.providers import ProviderRegistry


logger = logging.getLogger(__name__)


class UpdateStep(str, Enum):
    """Update steps in execution order."""
    CONFIRM = "confirm"
    CHECK_INSTALLATION = "check_installation"
    UPDATE = "update"


class UpdateOrchestrator:
    """Refreshes packages inside an already provisioned container."""

    def __init__(self, config_manager: ConfigManager, provider_registry: ProviderRegistry, prompter: Prompter):
        self.config_manager = config_manager
        self.provider_registry = provider_registry
        self.prompter = prompter

    async def update(self, app_name: str) -> ProvisionResult:
        """Confirm, check the installation marker, then update packages."""
        app = self.config_manager.get_application(app_name)
        result = ProvisionResult()
        step = UpdateStep.CONFIRM

        try:
            try:
                proceed = self.prompter.confirm(
                    f"{app.name} LXC UPDATE", f"This will update {app.name} LXC. Proceed?", default=True
                )
            except PromptCancelled as e:
                raise InputCancelled("User exited script") from e
            if not proceed:
                raise InputCancelled("User exited script")
            result.completed_steps.append(step.value)

            step = UpdateStep.CHECK_INSTALLATION
            marker = Path(self.config_manager.config.update.install_marker)
            if not await asyncio.to_thread(marker.exists):
                raise PreflightError(f"No {app.name} Installation Found!")
            result.completed_steps.append(step.value)

            step = UpdateStep.UPDATE
            updater = self.provider_registry.require("updater")
            logger.info(f"Updating {app.name} LXC")
            try:
                await updater.update()
            except EXTERNAL_FAILURES as e:
                raise ExternalError(f"update failed: {describe_failure(e)}", step.value) from e
            result.completed_steps.append(step.value)

            result.success = True
            logger.info(f"Updated {app.name} LXC")

        except ProvisionError as e:
            result.fail(e, step.value)
            if e.category == ErrorCategory.INPUT_CANCEL:
                logger.info(f"Update cancelled: {e}")
            else:
                logger.error(f"Update failed at {result.failed_step}: {e}")

        return result
