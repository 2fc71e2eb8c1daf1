"""
Instance requests - Client-side validation of instance commands.

Builds the requests the client sends to the daemon for `stop` and `mount`.
These functions only validate arguments and populate data; sending the
request is the dispatcher's job.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from .constants import DEFAULT_INSTANCE_ID

logger = logging.getLogger(__name__)

_ID_MAP_PATTERN = re.compile(r"^[0-9]+:[0-9]+$")


class ArgumentError(ValueError):
    """Invalid command-line arguments."""

    def __init__(self, message: str, note: str | None = None):
        self.note = note
        super().__init__(message)


@dataclass
class StopRequest:
    instance_names: list[str] = field(default_factory=list)
    all_instances: bool = False
    time_minutes: int = 0
    cancel_shutdown: bool = False


@dataclass
class IdMapping:
    """Ownership mapping from a host id to an instance id."""

    host_id: int
    instance_id: int


@dataclass
class TargetPath:
    instance_name: str
    target_path: str


@dataclass
class MountRequest:
    source_path: str
    target_paths: list[TargetPath] = field(default_factory=list)
    uid_mappings: list[IdMapping] = field(default_factory=list)
    gid_mappings: list[IdMapping] = field(default_factory=list)


def instance_action_message(instance_names: list[str], action: str, all_instances: bool = False) -> str:
    """Progress message for an action, e.g. 'Stopping foo, bar'."""
    if all_instances:
        return f"{action} all instances"
    return f"{action} {', '.join(instance_names)}"


def build_stop_request(
    names: list[str] | None = None,
    all_instances: bool = False,
    time: str | None = None,
    cancel: bool = False,
    primary_name: str = "",
) -> StopRequest:
    """
    Validate `stop` arguments and build the request.

    Args:
        names: Instance names given on the command line
        all_instances: --all was given
        time: Delay before shutdown in minutes ("+5" and "5" are equivalent)
        cancel: Cancel a pending delayed shutdown
        primary_name: Instance assumed when no name is given (empty = disabled)

    Returns:
        StopRequest ready for dispatch

    Raises:
        ArgumentError: On conflicting or malformed arguments
    """
    names = list(names or [])

    if names and all_instances:
        raise ArgumentError("Cannot specify name when --all option set")
    if not names and not all_instances and not primary_name:
        raise ArgumentError("Name argument or --all is required", note="Note: the primary instance is disabled.")

    if time is not None and cancel:
        raise ArgumentError("Cannot set 'time' and 'cancel' options at the same time")

    time = time if time is not None else "0"
    if time.startswith("+"):
        time = time[1:]
    if not (time.isascii() and time.isdigit()):
        raise ArgumentError("Time must be in digit form")

    if not names and not all_instances:
        names = [primary_name]

    return StopRequest(
        instance_names=names,
        all_instances=all_instances,
        time_minutes=int(time),
        cancel_shutdown=cancel,
    )


def _parse_id_maps(maps: list[str], kind: str) -> list[IdMapping]:
    mappings = []
    for id_map in maps:
        if not _ID_MAP_PATTERN.match(id_map):
            raise ArgumentError(f"Invalid {kind} map given: {id_map}")
        host_id, instance_id = id_map.split(":")
        mappings.append(IdMapping(host_id=int(host_id), instance_id=int(instance_id)))
    return mappings


def build_mount_request(
    source: str,
    targets: list[str],
    uid_maps: list[str] | None = None,
    gid_maps: list[str] | None = None,
    host_uid: int | None = None,
    host_gid: int | None = None,
    default_id: int = DEFAULT_INSTANCE_ID,
) -> MountRequest:
    """
    Validate `mount` arguments and build the request.

    Args:
        source: Local directory to mount
        targets: Mount points in <name>[:<path>] format
        uid_maps: "<host>:<instance>" user id mappings
        gid_maps: "<host>:<instance>" group id mappings
        host_uid: Host user id for the default mapping (default: current user)
        host_gid: Host group id for the default mapping (default: current group)
        default_id: Instance-side id for the default mapping

    Returns:
        MountRequest ready for dispatch

    Raises:
        ArgumentError: On invalid source, targets or mappings
    """
    if not targets:
        raise ArgumentError("Not enough arguments given")

    source_dir = Path(source)
    if not source_dir.exists():
        raise ArgumentError(f'Source path "{source}" does not exist')
    if not source_dir.is_dir():
        raise ArgumentError(f'Source path "{source}" is not a directory')
    if not os.access(source_dir, os.R_OK):
        raise ArgumentError(f'Source path "{source}" is not readable')

    source_path = str(source_dir.absolute())
    request = MountRequest(source_path=source_path)

    for target in targets:
        parts = [part for part in target.split(":") if part]
        if not parts:
            raise ArgumentError(f"Invalid target given: {target}")
        target_path = parts[1] if len(parts) > 1 else source_path
        request.target_paths.append(TargetPath(instance_name=parts[0], target_path=target_path))

    request.uid_mappings = _parse_id_maps(uid_maps or [], "UID")
    request.gid_mappings = _parse_id_maps(gid_maps or [], "GID")

    if not uid_maps and not gid_maps:
        logger.debug("Adding default uid/gid mapping")
        uid = host_uid if host_uid is not None else os.getuid()
        gid = host_gid if host_gid is not None else os.getgid()
        request.uid_mappings.append(IdMapping(host_id=uid, instance_id=default_id))
        request.gid_mappings.append(IdMapping(host_id=gid, instance_id=default_id))

    return request
