"""
Workflow layer - Remote catalog of VM provisioning templates.

Workflows are DATA STRUCTURES describing the instance a user gets.
They do NOT boot anything - that's the daemon's job.
"""

from .applier import apply_workflow
from .cache import WorkflowCache, WorkflowSnapshot
from .catalog import WorkflowCatalog, create_catalog
from .exceptions import (
    ArchiveCorrupt,
    FetchFailure,
    IncompatibleWorkflow,
    InvalidWorkflowName,
    SchemaViolation,
    UnknownWorkflow,
    WorkflowError,
    WorkflowMinimumViolation,
)
from .fetcher import ArchiveFetcher, UrlArchiveFetcher
from .models import ImageQuery, WorkflowDefinition, WorkflowInfo
from .parser import parse_workflow
from .reader import ArchiveReader, ZipArchiveReader

__all__ = [
    "ArchiveCorrupt",
    "ArchiveFetcher",
    "ArchiveReader",
    "FetchFailure",
    "ImageQuery",
    "IncompatibleWorkflow",
    "InvalidWorkflowName",
    "SchemaViolation",
    "UnknownWorkflow",
    "UrlArchiveFetcher",
    "WorkflowCache",
    "WorkflowCatalog",
    "WorkflowDefinition",
    "WorkflowError",
    "WorkflowInfo",
    "WorkflowMinimumViolation",
    "WorkflowSnapshot",
    "ZipArchiveReader",
    "apply_workflow",
    "create_catalog",
    "parse_workflow",
]
