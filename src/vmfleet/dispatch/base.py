"""Base dispatcher classes and protocols."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from ..instance_requests import MountRequest, StopRequest

InstanceRequest = StopRequest | MountRequest


@dataclass
class DispatchResult:
    """Result of sending a request to the daemon."""

    success: bool
    command: str
    instance_names: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class DispatchCallbacks:
    """
    Callbacks for dispatch progress reporting.

    Allows CLI to display progress without coupling dispatchers to Rich/UI.
    All callbacks are optional - if None, no callback is made.
    """

    on_start: Callable[[str], None] | None = None  # progress message
    on_complete: Callable[[DispatchResult], None] | None = None


class DispatcherProtocol(Protocol):
    """Protocol for request dispatchers."""

    def dispatch(
        self, command: str, request: InstanceRequest, callbacks: DispatchCallbacks | None = None
    ) -> DispatchResult:
        """
        Send a request.

        Args:
            command: Command name ("stop", "mount")
            request: The validated request
            callbacks: Optional callbacks for progress reporting

        Returns:
            DispatchResult with the outcome
        """
        ...
