"""
Workflow parser - Turns one bundle entry into a validated WorkflowDefinition.

Validation is a pipeline of independent field checks run in a fixed order.
Each check reads the raw document and returns the values it is responsible
for, or raises SchemaViolation naming the offending field. The first failing
check aborts the parse of that entry.

Document layout:

    description: Minimal Docker environment
    version: "0.1"
    runs-on: [x86_64, arm64]
    instances:
      docker:
        image: "daily:jammy"
        limits:
          min-cpu: 2
          min-mem: 2G
          min-disk: 25G
        timeout: 600
        cloud-init:
          vendor-data: |
            runcmd: [...]
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import urlsplit

import yaml

from ..config import normalize_architecture
from ..constants import SUPPORTED_IMAGE_SCHEMES, WORKFLOW_SUFFIXES, WORKFLOWS_DIR_VERSION
from ..memory_size import MemorySize
from .exceptions import InvalidWorkflowName, SchemaViolation
from .models import ImageQuery, WorkflowDefinition

_HOSTNAME_PATTERN = re.compile(r"^[a-z]([a-z0-9-]*[a-z0-9])?$")


def workflow_name_for(entry_name: str) -> str:
    """Workflow id for a bundle entry: the file name without its suffix."""
    return PurePosixPath(entry_name).stem


def is_workflow_entry(entry_name: str) -> bool:
    """Check if a bundle entry is a workflow document of the current schema version."""
    path = PurePosixPath(entry_name)
    return path.parent.name == WORKFLOWS_DIR_VERSION and path.suffix in WORKFLOW_SUFFIXES


def is_valid_hostname(name: str) -> bool:
    return bool(_HOSTNAME_PATTERN.match(name))


@dataclass
class WorkflowEntry:
    """Document being validated, with the instance section for its workflow."""

    name: str
    document: dict[str, Any]

    @property
    def instance(self) -> dict[str, Any]:
        instances = self.document.get("instances")
        if not isinstance(instances, dict):
            return {}
        section = instances.get(self.name)
        return section if isinstance(section, dict) else {}

    @property
    def limits(self) -> dict[str, Any]:
        limits = self.instance.get("limits")
        return limits if isinstance(limits, dict) else {}


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _as_int(value: Any) -> int | None:
    """Integer value of an int or digit string, None if it is neither."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value.strip())
    return None


def _required_string(entry: WorkflowEntry, key: str) -> str:
    if key not in entry.document or entry.document[key] is None:
        raise SchemaViolation(entry.name, key, f"The '{key}' key is required for the {entry.name} workflow")
    value = entry.document[key]
    if not _is_scalar(value):
        raise SchemaViolation(entry.name, key, f"Cannot convert '{key}' key for the {entry.name} workflow")
    return str(value)


def check_description(entry: WorkflowEntry) -> dict[str, Any]:
    return {"description": _required_string(entry, "description")}


def check_version(entry: WorkflowEntry) -> dict[str, Any]:
    return {"version": _required_string(entry, "version")}


def check_runs_on(entry: WorkflowEntry) -> dict[str, Any]:
    if "runs-on" not in entry.document:
        return {}

    value = entry.document["runs-on"]
    tags = [value] if isinstance(value, str) else value
    if not isinstance(tags, list) or not all(isinstance(tag, str) and tag.strip() for tag in tags):
        raise SchemaViolation(entry.name, "runs-on", f"Cannot convert 'runs-on' key for the {entry.name} workflow")
    return {"runs_on": frozenset(normalize_architecture(tag) for tag in tags)}


def check_name(entry: WorkflowEntry) -> dict[str, Any]:
    if not is_valid_hostname(entry.name):
        raise InvalidWorkflowName(entry.name)
    return {"id": entry.name, "aliases": (entry.name,)}


def check_image(entry: WorkflowEntry) -> dict[str, Any]:
    value = entry.instance.get("image")
    if value is None:
        return {"image": ImageQuery()}
    if not isinstance(value, str) or not value.strip():
        raise SchemaViolation(entry.name, "image", f"Cannot convert 'image' key for the {entry.name} workflow")

    value = value.strip()
    if "://" in value:
        if urlsplit(value).scheme not in SUPPORTED_IMAGE_SCHEMES:
            raise SchemaViolation(entry.name, "image", "Unsupported image scheme in Workflow")
        return {"image": ImageQuery(release=value, source_url=value)}

    remote_name, _, release = value.rpartition(":")
    if not release:
        raise SchemaViolation(entry.name, "image", f"Cannot convert 'image' key for the {entry.name} workflow")
    return {"image": ImageQuery(release=release, remote_name=remote_name)}


def check_min_cores(entry: WorkflowEntry) -> dict[str, Any]:
    if "min-cpu" not in entry.limits:
        return {}
    cores = _as_int(entry.limits["min-cpu"])
    if cores is None or cores < 1:
        raise SchemaViolation(entry.name, "min-cpu", "Minimum CPU value in workflow is invalid")
    return {"min_cores": cores}


def _min_size(entry: WorkflowEntry, key: str, label: str) -> MemorySize:
    value = entry.limits[key]
    try:
        return MemorySize.parse(value)
    except ValueError:
        raise SchemaViolation(entry.name, key, f"Minimum {label} value in workflow is invalid") from None


def check_min_sizes(entry: WorkflowEntry) -> dict[str, Any]:
    values = {}
    if "min-mem" in entry.limits:
        values["min_memory"] = _min_size(entry, "min-mem", "memory size")
    if "min-disk" in entry.limits:
        values["min_disk"] = _min_size(entry, "min-disk", "disk space")
    return values


def check_cloud_init(entry: WorkflowEntry) -> dict[str, Any]:
    cloud_init = entry.instance.get("cloud-init")
    if cloud_init is None:
        return {}

    error = SchemaViolation(entry.name, "cloud-init", f"Cannot convert cloud-init data for the {entry.name} workflow")
    if not isinstance(cloud_init, dict):
        raise error

    vendor_data = cloud_init.get("vendor-data")
    if vendor_data is None:
        return {}
    if not isinstance(vendor_data, str):
        raise error

    try:
        config = yaml.safe_load(vendor_data)
    except yaml.YAMLError:
        raise error from None

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise error
    return {"cloud_init": config}


def check_timeout(entry: WorkflowEntry) -> dict[str, Any]:
    if "timeout" not in entry.instance:
        return {}
    timeout = _as_int(entry.instance["timeout"])
    if timeout is None or timeout < 0:
        raise SchemaViolation(entry.name, "timeout", "Invalid timeout given in workflow")
    return {"timeout": timeout}


# Order matters: it decides which violation is reported for an entry
FIELD_CHECKS: list[Callable[[WorkflowEntry], dict[str, Any]]] = [
    check_description,
    check_version,
    check_runs_on,
    check_name,
    check_image,
    check_min_cores,
    check_min_sizes,
    check_cloud_init,
    check_timeout,
]


def load_document(name: str, raw: bytes) -> dict[str, Any]:
    """
    Parse raw bytes into a YAML mapping.

    Raises:
        SchemaViolation: If the bytes are not a YAML mapping
    """
    try:
        document = yaml.safe_load(raw)
    except (yaml.YAMLError, UnicodeDecodeError):
        raise SchemaViolation(name, "document", f"Cannot parse the {name} workflow") from None

    if not isinstance(document, dict):
        raise SchemaViolation(name, "document", f"Cannot parse the {name} workflow")
    return document


def parse_workflow(entry_name: str, raw: bytes) -> WorkflowDefinition:
    """
    Parse and validate one bundle entry.

    Args:
        entry_name: Path of the entry inside the bundle
        raw: Entry content

    Returns:
        The validated WorkflowDefinition

    Raises:
        SchemaViolation: For the first check the entry fails
    """
    name = workflow_name_for(entry_name)
    entry = WorkflowEntry(name=name, document=load_document(name, raw))

    values: dict[str, Any] = {}
    for check in FIELD_CHECKS:
        values.update(check(entry))

    return WorkflowDefinition(**values)
