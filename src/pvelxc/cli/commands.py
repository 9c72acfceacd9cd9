"""Command implementations for CLI."""

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from pvelxc.engine import policy as device_policy
from pvelxc.engine.collector import describe_configuration
from pvelxc.engine.config import ConfigManager
from pvelxc.engine.errors import ErrorCategory, ProvisionError
from pvelxc.engine.orchestrator import CollectMode, ProvisioningOrchestrator
from pvelxc.engine.prompts import PromptCancelled, Prompter
from pvelxc.engine.result import ProvisionResult
from pvelxc.engine.update import UpdateOrchestrator
from pvelxc.models.container import PrivilegeMode
from pvelxc.providers import ProviderRegistry


console = Console()


def _cancelled(message: str) -> ProvisionResult:
    return ProvisionResult(category=ErrorCategory.INPUT_CANCEL, message=message)


async def _initialized_registry(config_manager: ConfigManager) -> ProviderRegistry:
    registry = ProviderRegistry()
    await registry.initialize(config_manager.config)
    return registry


def _print_settings(result: ProvisionResult):
    config = result.configuration
    if config is None:
        return
    for name, value in describe_configuration(config).items():
        console.print(f"[green]Using {name}:[/green] [bold]{value}[/bold]")


async def create_container(
    config_manager: ConfigManager,
    prompter: Prompter,
    app: str,
    mode: Optional[CollectMode] = None,
    assume_yes: bool = False,
) -> ProvisionResult:
    """Provision a new container for an application."""
    spec = config_manager.get_application(app)
    if not assume_yes:
        try:
            proceed = prompter.confirm(
                f"{spec.name} LXC", f"This will create a New {spec.name} LXC. Proceed?", default=True
            )
        except PromptCancelled:
            proceed = False
        if not proceed:
            return _cancelled("User exited script")

    registry = await _initialized_registry(config_manager)
    try:
        orchestrator = ProvisioningOrchestrator(config_manager, registry, prompter)
        result = await orchestrator.provision(spec.name, mode)
    finally:
        await registry.close()

    if result.success:
        _print_settings(result)
        for warning in result.warnings:
            console.print(f"[yellow]Warning:[/yellow] {warning}")
        console.print(
            f"[green]✓[/green] {spec.name} LXC {result.configuration.ctid} completed successfully"
        )
    return result


async def update_container(config_manager: ConfigManager, prompter: Prompter, app: str) -> ProvisionResult:
    """Update packages inside this container."""
    registry = await _initialized_registry(config_manager)
    try:
        orchestrator = UpdateOrchestrator(config_manager, registry, prompter)
        result = await orchestrator.update(app)
    finally:
        await registry.close()

    if result.success:
        console.print(f"[green]✓[/green] Updated {app} LXC")
    return result


async def run_application(
    config_manager: ConfigManager,
    prompter: Prompter,
    app: str,
    mode: Optional[CollectMode] = None,
) -> ProvisionResult:
    """Create on a hypervisor host, update anywhere else."""
    registry = await _initialized_registry(config_manager)
    try:
        on_hypervisor = await registry.require("host").is_hypervisor()
    finally:
        await registry.close()

    if on_hypervisor:
        return await create_container(config_manager, prompter, app, mode)
    return await update_container(config_manager, prompter, app)


async def augment_container(
    config_manager: ConfigManager,
    prompter: Prompter,
    ctid: int,
    app: str,
    unprivileged: bool = False,
    overlay: bool = False,
) -> ProvisionResult:
    """Re-apply an application's device rules to an existing container."""
    privilege = PrivilegeMode.UNPRIVILEGED if unprivileged else PrivilegeMode.PRIVILEGED
    registry = await _initialized_registry(config_manager)
    try:
        orchestrator = ProvisioningOrchestrator(config_manager, registry, prompter)
        result = ProvisionResult()
        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task(f"Applying device rules to container {ctid}...", total=None)
                added = await orchestrator.augment_application(ctid, app, privilege, overlay)
        except ProvisionError as e:
            return result.fail(e, "augment_devices")
    finally:
        await registry.close()

    if added:
        for line in added:
            console.print(f"  [green]+[/green] {line}")
        console.print(f"[green]✓[/green] Added {len(added)} lines to container {ctid}")
    else:
        console.print(f"[green]✓[/green] Container {ctid} already has the device rules")
    result.success = True
    result.completed_steps.append("augment_devices")
    return result


def show_policy(config_manager: ConfigManager, app: str, unprivileged: bool = False, overlay: bool = False):
    """Print the device policy resolved for an application."""
    spec = config_manager.get_application(app)
    privilege = PrivilegeMode.UNPRIVILEGED if unprivileged else PrivilegeMode.PRIVILEGED
    policy = device_policy.resolve(privilege, spec.category, overlay and spec.overlay_eligible)

    console.print(f"[bold]{spec.name}[/bold] ({spec.category.value}, {privilege.value})")
    console.print(f"  Features: {','.join(policy.features)}")

    lines = policy.config_lines()
    if not lines:
        console.print("  No device rules")
        return
    table = Table(title="Device configuration")
    table.add_column("Line", style="cyan")
    for line in lines:
        table.add_row(line)
    console.print(table)


def list_applications(config_manager: ConfigManager):
    """List the application catalog."""
    table = Table(title="Applications")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("OS")
    table.add_column("Disk")
    table.add_column("Cores")
    table.add_column("RAM")

    for spec in sorted(config_manager.applications.values(), key=lambda s: s.name.lower()):
        disk = int(spec.disk_size) if float(spec.disk_size).is_integer() else spec.disk_size
        table.add_row(
            spec.name,
            spec.category.value,
            f"{spec.os_type} {spec.os_version}",
            f"{disk}GB",
            str(spec.cores),
            f"{spec.memory}MiB",
        )

    console.print(table)
