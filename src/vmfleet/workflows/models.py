"""Workflow definitions and the values the catalog hands back to callers."""

from dataclasses import dataclass, field
from typing import Any

from ..config import normalize_architecture
from ..constants import DEFAULT_IMAGE_RELEASE
from ..memory_size import MemorySize


@dataclass(frozen=True)
class ImageQuery:
    """
    Which image to boot.

    Either a symbolic release on a named remote ("daily:jammy"), or a custom
    image given by URL in `source_url`.
    """

    release: str = DEFAULT_IMAGE_RELEASE
    remote_name: str = ""
    source_url: str | None = None

    @property
    def is_custom(self) -> bool:
        return self.source_url is not None


@dataclass(frozen=True)
class WorkflowInfo:
    """Summary of a workflow as shown in listings."""

    id: str
    aliases: tuple[str, ...]
    release_title: str
    version: str


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    A validated workflow.

    Workflows are DATA - they describe the instance a user gets, not how it
    is booted. Definitions are immutable once parsed.
    """

    id: str
    version: str
    description: str
    aliases: tuple[str, ...] = ()
    # Empty = runs on every architecture
    runs_on: frozenset[str] = frozenset()
    image: ImageQuery = field(default_factory=ImageQuery)
    min_cores: int | None = None
    min_memory: MemorySize | None = None
    min_disk: MemorySize | None = None
    cloud_init: dict[str, Any] | None = None
    # Seconds, 0 = no timeout
    timeout: int = 0

    def __post_init__(self):
        if not self.aliases:
            object.__setattr__(self, "aliases", (self.id,))

    def runs_on_arch(self, arch: str | None) -> bool:
        """Check if the workflow may be used on the given architecture."""
        if not self.runs_on:
            return True
        if arch is None:
            return False
        return normalize_architecture(arch) in {normalize_architecture(tag) for tag in self.runs_on}

    def info(self) -> WorkflowInfo:
        return WorkflowInfo(id=self.id, aliases=self.aliases, release_title=self.description, version=self.version)
