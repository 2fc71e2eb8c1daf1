"""
Workflow catalog - Public lookup and apply operations over the cached bundle.

One catalog is created per process and shared. Every operation first makes
sure the cache is fresh and then reads a single snapshot, all under one lock,
so concurrent callers never see a half-refreshed set of workflows.
"""

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..config import AppConfig, host_architecture
from ..provisioning import VMProvisioningRequest
from .applier import apply_workflow
from .cache import WorkflowCache, WorkflowSnapshot
from .exceptions import IncompatibleWorkflow, UnknownWorkflow
from .fetcher import ArchiveFetcher, UrlArchiveFetcher
from .models import ImageQuery, WorkflowDefinition, WorkflowInfo
from .reader import ArchiveReader

logger = logging.getLogger(__name__)


class WorkflowCatalog:
    """
    The set of workflows available on this host.

    Construction performs the first refresh. A download or extraction failure
    at that point is logged and leaves the catalog empty; any other error
    aborts construction.
    """

    def __init__(
        self,
        archive_url: str,
        fetcher: ArchiveFetcher,
        cache_dir: Path,
        ttl: float,
        compatibility_tag: str | None = None,
        reader: ArchiveReader | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._lock = threading.RLock()
        self._cache = WorkflowCache(
            archive_url,
            fetcher,
            cache_dir,
            ttl,
            compatibility_tag=compatibility_tag,
            reader=reader,
            clock=clock,
        )
        self._cache.refresh()

    @property
    def archive_url(self) -> str:
        return self._cache.archive_url

    @property
    def archive_path(self) -> Path:
        return self._cache.archive_path

    @property
    def compatibility_tag(self) -> str | None:
        return self._cache.compatibility_tag

    @property
    def last_refresh(self) -> float | None:
        return self._cache.last_refresh

    @property
    def archive_modified(self) -> datetime | None:
        """When the cached bundle was last written, None before the first download."""
        return self._cache.archive_modified

    def refresh(self) -> bool:
        """Force a refresh regardless of the TTL."""
        with self._lock:
            return self._cache.refresh()

    def _fresh_snapshot(self) -> WorkflowSnapshot:
        with self._lock:
            self._cache.ensure_fresh()
            return self._cache.snapshot

    def _resolve(self, snapshot: WorkflowSnapshot, name: str) -> WorkflowDefinition:
        if name in snapshot.definitions:
            return snapshot.definitions[name]
        if name in snapshot.rejected:
            raise snapshot.rejected[name]
        if name in snapshot.incompatible:
            raise IncompatibleWorkflow(name)
        raise UnknownWorkflow(name)

    def all_workflows(self) -> list[WorkflowInfo]:
        """Summaries of every valid workflow usable on this host, in bundle order."""
        return [definition.info() for definition in self._fresh_snapshot().workflows()]

    def info_for(self, name: str) -> WorkflowInfo:
        """
        Summary of one workflow.

        Raises:
            UnknownWorkflow: If no workflow has this name or alias
            IncompatibleWorkflow: If the workflow does not run on this host
            SchemaViolation: If the workflow failed validation
        """
        return self._resolve(self._fresh_snapshot(), name).info()

    def fetch_workflow_for(self, name: str, request: VMProvisioningRequest) -> ImageQuery:
        """
        Apply a workflow to a provisioning request.

        Returns:
            The image to boot

        Raises:
            Same as info_for, plus WorkflowMinimumViolation
        """
        definition = self._resolve(self._fresh_snapshot(), name)
        logger.debug(f"Applying workflow '{definition.id}' to request for '{request.vm_name}'")
        return apply_workflow(definition, request)

    def name_from_workflow(self, name: str) -> str:
        """Canonical id of a known workflow, empty string otherwise."""
        definition = self._fresh_snapshot().definitions.get(name)
        return definition.id if definition else ""

    def workflow_timeout(self, name: str) -> int:
        """Launch timeout in seconds of a known workflow, 0 if unknown or unset."""
        definition = self._fresh_snapshot().definitions.get(name)
        return definition.timeout if definition else 0


def create_catalog(config: AppConfig, fetcher: ArchiveFetcher | None = None) -> WorkflowCatalog:
    """
    Create a catalog from application configuration.

    Args:
        config: Loaded AppConfig
        fetcher: Optional fetcher (default: urllib with the configured timeout)

    Returns:
        WorkflowCatalog, already refreshed once
    """
    workflows = config.workflows
    return WorkflowCatalog(
        workflows.url,
        fetcher or UrlArchiveFetcher(timeout=workflows.download_timeout),
        workflows.cache_dir,
        workflows.ttl_seconds,
        compatibility_tag=workflows.compatibility_tag or host_architecture(),
    )
