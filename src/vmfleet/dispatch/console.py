"""Console dispatcher - Renders requests instead of sending them to a daemon."""

import logging

from rich.console import Console
from rich.table import Table

from ..instance_requests import MountRequest, StopRequest, instance_action_message
from .base import DispatchCallbacks, DispatchResult, InstanceRequest

logger = logging.getLogger(__name__)


class ConsoleDispatcher:
    """
    Dispatcher that prints the request it was given.

    Used when no daemon transport is configured, and as a dry run of what
    the client would send.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def dispatch(
        self, command: str, request: InstanceRequest, callbacks: DispatchCallbacks | None = None
    ) -> DispatchResult:
        cb = callbacks or DispatchCallbacks()

        if isinstance(request, StopRequest):
            names = request.instance_names
            message = instance_action_message(names, "Stopping", request.all_instances)
        elif isinstance(request, MountRequest):
            names = [target.instance_name for target in request.target_paths]
            message = f"Mounting {request.source_path}"
        else:
            raise TypeError(f"Unsupported request type: {type(request).__name__}")

        if cb.on_start:
            cb.on_start(message)

        logger.debug(f"Dispatching {command} request: {request}")
        self.console.print(self._render(command, request))

        result = DispatchResult(success=True, command=command, instance_names=list(names))
        if cb.on_complete:
            cb.on_complete(result)
        return result

    def _render(self, command: str, request: InstanceRequest) -> Table:
        table = Table(title=f"{command} request")
        table.add_column("Field", style="cyan")
        table.add_column("Value")

        if isinstance(request, StopRequest):
            targets = "all instances" if request.all_instances else ", ".join(request.instance_names)
            table.add_row("Instances", targets)
            table.add_row("Delay (minutes)", str(request.time_minutes))
            table.add_row("Cancel shutdown", "yes" if request.cancel_shutdown else "no")
        else:
            table.add_row("Source", request.source_path)
            for target in request.target_paths:
                table.add_row("Target", f"{target.instance_name}:{target.target_path}")
            for mapping in request.uid_mappings:
                table.add_row("UID map", f"{mapping.host_id}:{mapping.instance_id}")
            for mapping in request.gid_mappings:
                table.add_row("GID map", f"{mapping.host_id}:{mapping.instance_id}")

        return table
