"""
Dispatch layer - Hands validated instance requests to the daemon.

Dispatchers only deliver requests; building and validating them is done by
instance_requests.
"""

from .base import DispatchCallbacks, DispatcherProtocol, DispatchResult, InstanceRequest
from .console import ConsoleDispatcher

__all__ = [
    "ConsoleDispatcher",
    "DispatchCallbacks",
    "DispatcherProtocol",
    "DispatchResult",
    "InstanceRequest",
]
