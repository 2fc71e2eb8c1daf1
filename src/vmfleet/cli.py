"""
CLI module - Command line interface for vmfleet

Entry point for the `vmf` command using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import AppConfig, load_config
from .dispatch import ConsoleDispatcher, DispatchCallbacks, DispatcherProtocol
from .instance_requests import ArgumentError, build_mount_request, build_stop_request
from .memory_size import MemorySize
from .provisioning import VMProvisioningRequest
from .workflows import WorkflowCatalog, WorkflowError, create_catalog

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="vmf",
    help="vmfleet - Lightweight VM fleet manager.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    if value:
        console.print(f"vmf version {__version__}")
        raise typer.Exit()


# Type aliases for common options
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config file", exists=True, dir_okay=False),
]


def get_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration and set up logging from it."""
    config = load_config(config_path)
    setup_logging(config)
    return config


def setup_logging(config: AppConfig) -> None:
    """Route vmfleet logs to stderr through Rich."""
    root = logging.getLogger("vmfleet")
    root.setLevel(config.logging.level.upper())
    if config.logging.console_logging and not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=err_console, show_path=False))


def get_catalog(config: AppConfig) -> WorkflowCatalog:
    """Create the workflow catalog; replaced in tests."""
    return create_catalog(config)


def get_dispatcher() -> DispatcherProtocol:
    """Dispatcher for instance requests; replaced in tests."""
    return ConsoleDispatcher(console)


def _fail(message: str, note: str | None = None) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}", markup=True, highlight=False)
    if note:
        err_console.print(note)
    return typer.Exit(1)


def _parse_size(value: str | None, option: str) -> MemorySize:
    if value is None:
        return MemorySize()
    try:
        return MemorySize.parse(value)
    except ValueError:
        raise _fail(f"Invalid {option} value: {value}") from None


@app.callback()
def main(
    version: Annotated[
        bool, typer.Option("--version", "-v", callback=version_callback, is_eager=True, help="Show version")
    ] = False,
):
    """vmfleet - Lightweight VM fleet manager."""
    pass


@app.command()
def workflows(config: ConfigOption = None):
    """
    List the workflows available on this host.

    [bold]Examples:[/bold]

        vmf workflows
    """
    cfg = get_config(config)
    try:
        catalog = get_catalog(cfg)
        infos = catalog.all_workflows()
    except WorkflowError as e:
        raise _fail(str(e)) from None

    if not infos:
        console.print("[yellow]No workflows available[/yellow]")
        return

    updated = catalog.archive_modified
    table = Table(title="Workflows", caption=f"Updated {updated:%Y-%m-%d %H:%M} UTC" if updated else None)
    table.add_column("Name", style="cyan")
    table.add_column("Aliases")
    table.add_column("Version")
    table.add_column("Description")

    for workflow in infos:
        aliases = ", ".join(alias for alias in workflow.aliases if alias != workflow.id)
        table.add_row(workflow.id, aliases, workflow.version, workflow.release_title)

    console.print(table)


@app.command()
def info(
    name: Annotated[str, typer.Argument(help="Workflow name or alias")],
    config: ConfigOption = None,
):
    """
    Show details of one workflow.

    [bold]Examples:[/bold]

        vmf info docker
    """
    cfg = get_config(config)
    try:
        catalog = get_catalog(cfg)
        workflow = catalog.info_for(name)
        timeout = catalog.workflow_timeout(name)
    except WorkflowError as e:
        raise _fail(str(e)) from None

    console.print(f"[bold]Name:[/bold] {workflow.id}")
    console.print(f"[bold]Aliases:[/bold] {', '.join(workflow.aliases)}")
    console.print(f"[bold]Version:[/bold] {workflow.version}")
    console.print(f"[bold]Description:[/bold] {workflow.release_title}")
    console.print(f"[bold]Timeout:[/bold] {f'{timeout}s' if timeout else 'none'}")


@app.command()
def plan(
    name: Annotated[str, typer.Argument(help="Workflow name or alias")],
    cpus: Annotated[int, typer.Option("--cpus", help="Number of CPUs (0 = workflow default)", min=0)] = 0,
    memory: Annotated[str | None, typer.Option("--memory", "-m", help="Memory size, e.g. 4G")] = None,
    disk: Annotated[str | None, typer.Option("--disk", "-d", help="Disk space, e.g. 50G")] = None,
    vm_name: Annotated[str, typer.Option("--name", "-n", help="Instance name")] = "",
    config: ConfigOption = None,
):
    """
    Show the instance a workflow would provision.

    Applies the workflow's minimums and cloud-init to the requested resources
    without launching anything.

    [bold]Examples:[/bold]

        vmf plan docker

        vmf plan docker --cpus 4 --memory 8G --disk 50G
    """
    cfg = get_config(config)
    request = VMProvisioningRequest(
        num_cores=cpus,
        mem_size=_parse_size(memory, "memory"),
        disk_space=_parse_size(disk, "disk"),
        vm_name=vm_name or name,
    )

    try:
        catalog = get_catalog(cfg)
        image = catalog.fetch_workflow_for(name, request)
        timeout = catalog.workflow_timeout(name)
    except WorkflowError as e:
        raise _fail(str(e)) from None

    table = Table(title=f"Provisioning plan: {request.vm_name}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    if image.is_custom:
        table.add_row("Image", image.source_url)
    else:
        table.add_row("Image", f"{image.remote_name}:{image.release}" if image.remote_name else image.release)
    table.add_row("CPUs", str(request.num_cores) if request.num_cores else "default")
    table.add_row("Memory", str(request.mem_size) if not request.mem_size.is_zero else "default")
    table.add_row("Disk", str(request.disk_space) if not request.disk_space.is_zero else "default")
    table.add_row("Cloud-init", ", ".join(request.vendor_data_config) if request.vendor_data_config else "none")
    table.add_row("Timeout", f"{timeout}s" if timeout else "none")

    console.print(table)


@app.command()
def stop(
    names: Annotated[list[str] | None, typer.Argument(help="Names of instances to stop")] = None,
    all_instances: Annotated[bool, typer.Option("--all", help="Stop all instances")] = False,
    time: Annotated[
        str | None, typer.Option("--time", "-t", help="Time from now, in minutes, to delay shutdown of the instance")
    ] = None,
    cancel: Annotated[bool, typer.Option("--cancel", "-c", help="Cancel a pending delayed shutdown")] = False,
    # -c belongs to --cancel here
    config: Annotated[
        Path | None, typer.Option("--config", help="Path to config file", exists=True, dir_okay=False)
    ] = None,
):
    """
    Stop running instances.

    Stop the named instances, if running. Without names or --all, the primary
    instance is assumed.

    [bold]Examples:[/bold]

        vmf stop foo bar

        vmf stop --all --time +10
    """
    cfg = get_config(config)
    try:
        request = build_stop_request(names, all_instances, time, cancel, cfg.client.primary_name)
    except ArgumentError as e:
        raise _fail(str(e), e.note) from None

    result = get_dispatcher().dispatch("stop", request, DispatchCallbacks(on_start=console.print))
    if not result.success:
        raise _fail("; ".join(result.errors))


@app.command()
def mount(
    source: Annotated[str, typer.Argument(help="Path of the local directory to mount")],
    targets: Annotated[list[str], typer.Argument(help="Target mount points, in <name>[:<path>] format")],
    uid_map: Annotated[
        list[str] | None, typer.Option("--uid-map", "-u", help="User ID mapping <host>:<instance>, repeatable")
    ] = None,
    gid_map: Annotated[
        list[str] | None, typer.Option("--gid-map", "-g", help="Group ID mapping <host>:<instance>, repeatable")
    ] = None,
    config: ConfigOption = None,
):
    """
    Mount a local directory in the instance.

    If the instance is not currently running, the directory will be mounted
    automatically on next boot.

    [bold]Examples:[/bold]

        vmf mount ./src primary:/home/ubuntu/src

        vmf mount ./data foo bar -u 1000:1000
    """
    cfg = get_config(config)
    try:
        request = build_mount_request(source, targets, uid_map, gid_map, default_id=cfg.client.default_instance_id)
    except ArgumentError as e:
        raise _fail(str(e), e.note) from None

    result = get_dispatcher().dispatch("mount", request, DispatchCallbacks(on_start=console.print))
    if not result.success:
        raise _fail("; ".join(result.errors))


def main_cli():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main_cli()
