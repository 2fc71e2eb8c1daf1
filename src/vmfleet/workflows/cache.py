"""
Workflow cache - Local copy of the workflow bundle and its refresh policy.

The cache downloads the bundle, validates every workflow in it and publishes
the result as an immutable snapshot. Download and extraction failures are
expected (network down, bad upload) and only logged: the previous snapshot
stays in place and the next call tries again. Anything else is a defect and
propagates.
"""

import hashlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType

from .exceptions import ArchiveCorrupt, FetchFailure, SchemaViolation
from .fetcher import ArchiveFetcher
from .models import WorkflowDefinition
from .parser import is_workflow_entry, parse_workflow, workflow_name_for
from .reader import ArchiveReader, ZipArchiveReader

logger = logging.getLogger(__name__)


def archive_file_name(url: str) -> str:
    """Deterministic cache file name for a bundle URL."""
    digest = hashlib.sha256(url.encode()).hexdigest()[:16]
    return f"workflows-{digest}.zip"


@dataclass(frozen=True)
class WorkflowSnapshot:
    """
    Result of one successful refresh.

    `definitions` maps ids and aliases to valid workflows usable on this host,
    in bundle order. Workflows left out are kept in `incompatible` or
    `rejected` so targeted lookups can explain why.
    """

    definitions: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    incompatible: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    rejected: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    def workflows(self) -> list[WorkflowDefinition]:
        """Unique definitions in bundle order."""
        seen: dict[str, WorkflowDefinition] = {}
        for definition in self.definitions.values():
            seen.setdefault(definition.id, definition)
        return list(seen.values())


class WorkflowCache:
    """Owns the cached bundle, the last refresh time and the current snapshot."""

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
        """
        Args:
            archive_url: Where the bundle is downloaded from
            fetcher: Downloads the bundle
            cache_dir: Directory holding the cached bundle
            ttl: Seconds a refresh stays valid (0 = always refresh)
            compatibility_tag: Host architecture used to filter `runs-on`
            reader: Reads bundle entries (default: zip)
            clock: Monotonic time source in seconds
        """
        self.archive_url = archive_url
        self.cache_dir = cache_dir
        self.ttl = ttl
        self.compatibility_tag = compatibility_tag
        self.archive_path = cache_dir / archive_file_name(archive_url)
        self._fetcher = fetcher
        self._reader = reader or ZipArchiveReader()
        self._clock = clock
        self._last_refresh: float | None = None
        self._snapshot = WorkflowSnapshot()

    @property
    def snapshot(self) -> WorkflowSnapshot:
        return self._snapshot

    @property
    def last_refresh(self) -> float | None:
        """Clock reading of the last successful refresh, None if there was none."""
        return self._last_refresh

    @property
    def archive_modified(self) -> datetime | None:
        return self._fetcher.last_modified(self.archive_path)

    def is_stale(self) -> bool:
        if self._last_refresh is None or self.ttl <= 0:
            return True
        return self._clock() - self._last_refresh >= self.ttl

    def ensure_fresh(self) -> None:
        """Refresh if the TTL has elapsed since the last successful refresh."""
        if self.is_stale():
            self.refresh()

    def refresh(self) -> bool:
        """
        Download and validate the bundle, replacing the current snapshot.

        Returns:
            True if a new snapshot was published
        """
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._fetcher.download(self.archive_url, self.archive_path)
            entries = self._reader.open(self.archive_path)
        except FetchFailure as e:
            logger.error(f"Error fetching workflows: {e}")
            return False
        except ArchiveCorrupt as e:
            logger.error(f"Error extracting Workflows zip file: {e}")
            return False

        self._snapshot = self._build_snapshot(entries)
        self._last_refresh = self._clock()
        logger.debug(f"Loaded {len(self._snapshot.workflows())} workflows from {self.archive_url}")
        return True

    def _build_snapshot(self, entries: list[tuple[str, bytes]]) -> WorkflowSnapshot:
        definitions: dict[str, WorkflowDefinition] = {}
        incompatible: dict[str, WorkflowDefinition] = {}
        rejected: dict[str, SchemaViolation] = {}

        for entry_name, raw in entries:
            if not is_workflow_entry(entry_name):
                continue

            name = workflow_name_for(entry_name)
            if name in definitions or name in incompatible or name in rejected:
                logger.error(f"Invalid workflow: Duplicate workflow name '{name}' in {entry_name}")
                continue

            try:
                definition = parse_workflow(entry_name, raw)
            except SchemaViolation as e:
                logger.error(e.log_message)
                rejected[name] = e
                continue

            if not definition.runs_on_arch(self.compatibility_tag):
                logger.info(f"Skipping workflow '{name}': not available on {self.compatibility_tag or 'this host'}")
                incompatible[name] = definition
                continue

            for alias in definition.aliases:
                definitions.setdefault(alias, definition)

        return WorkflowSnapshot(
            definitions=MappingProxyType(definitions),
            incompatible=MappingProxyType(incompatible),
            rejected=MappingProxyType(rejected),
        )
