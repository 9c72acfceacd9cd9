"""Main CLI implementation using Typer."""

import asyncio
import inspect
from pathlib import Path
from typing import Optional, Callable, Any

import typer
from pydantic import ValidationError
from rich.console import Console

from pvelxc.cli.commands import (
    augment_container,
    create_container,
    list_applications,
    run_application,
    show_policy,
    update_container,
)
from pvelxc.cli.prompts import RichPrompter
from pvelxc.engine.config import ConfigManager
from pvelxc.engine.orchestrator import CollectMode
from pvelxc.engine.result import ProvisionResult
from pvelxc.utils.logging import setup_logging


# Create Typer app
app = typer.Typer(
    name="pvelxc",
    help="Provision and update application LXC containers on Proxmox VE",
    add_completion=False,
)

# Console for rich output
console = Console()


def _collect_mode(default: bool, advanced: bool) -> Optional[CollectMode]:
    if default and advanced:
        console.print("[red]Error:[/red] Use either --default or --advanced")
        raise typer.Exit(1)
    if default:
        return CollectMode.DEFAULT
    if advanced:
        return CollectMode.ADVANCED
    return None


def _load_config(config: Optional[Path], verbose: bool) -> ConfigManager:
    config_manager = ConfigManager(config)
    asyncio.run(config_manager.load())
    setup_logging(config_manager.config.log_level, verbose=verbose)
    return config_manager


def _report(result: ProvisionResult):
    """Map a run outcome onto the process exit status."""
    if result.success:
        return
    if result.cancelled:
        console.print("[yellow]⚠  User exited script[/yellow]")
        raise typer.Exit(0)
    step = f" ({result.failed_step})" if result.failed_step else ""
    console.print(f"[red]Error:[/red] {result.message}{step}")
    raise typer.Exit(1)


def _run_cli_command(handler: Callable[..., Any], config: Optional[Path], verbose: bool, **kwargs: Any):
    """Helper to run a CLI command with loaded configuration and error handling."""
    try:
        config_manager = _load_config(config, verbose)
        if inspect.iscoroutinefunction(handler):
            result = asyncio.run(handler(config_manager, RichPrompter(console), **kwargs))
        else:
            result = handler(config_manager, **kwargs)
    except (ValueError, FileNotFoundError, ValidationError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if isinstance(result, ProvisionResult):
        _report(result)


ConfigOption = typer.Option(None, "--config", "-c", help="Path to configuration file")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


@app.command("create")
def create_command(
    name: str = typer.Argument(..., help="Application to provision"),
    default: bool = typer.Option(False, "--default", help="Use default settings"),
    advanced: bool = typer.Option(False, "--advanced", help="Walk through every setting"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the initial confirmation"),
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Create a new container for an application."""
    mode = _collect_mode(default, advanced)
    _run_cli_command(create_container, config, verbose, app=name, mode=mode, assume_yes=yes)


@app.command("update")
def update_command(
    name: str = typer.Argument(..., help="Application installed in this container"),
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Update the application inside this container."""
    _run_cli_command(update_container, config, verbose, app=name)


@app.command("run")
def run_command(
    name: str = typer.Argument(..., help="Application name"),
    default: bool = typer.Option(False, "--default", help="Use default settings"),
    advanced: bool = typer.Option(False, "--advanced", help="Walk through every setting"),
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Create on a Proxmox host, update inside a container."""
    mode = _collect_mode(default, advanced)
    _run_cli_command(run_application, config, verbose, app=name, mode=mode)


@app.command("augment")
def augment_command(
    ctid: int = typer.Argument(..., help="Container ID"),
    name: str = typer.Argument(..., help="Application whose device rules to apply"),
    unprivileged: bool = typer.Option(False, "--unprivileged", help="Container is unprivileged"),
    overlay: bool = typer.Option(False, "--overlay", help="Container uses an overlay storage driver"),
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Add missing device rules to an existing container."""
    _run_cli_command(
        augment_container, config, verbose,
        ctid=ctid, app=name, unprivileged=unprivileged, overlay=overlay,
    )


@app.command("policy")
def policy_command(
    name: str = typer.Argument(..., help="Application name"),
    unprivileged: bool = typer.Option(False, "--unprivileged", help="Resolve for an unprivileged container"),
    overlay: bool = typer.Option(False, "--overlay", help="Resolve with an overlay storage driver"),
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Show the device policy for an application."""
    _run_cli_command(show_policy, config, verbose, app=name, unprivileged=unprivileged, overlay=overlay)


@app.command("apps")
def apps_command(
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """List known applications."""
    _run_cli_command(list_applications, config, verbose)


def main():
    """Main entry point for CLI."""
    app()
