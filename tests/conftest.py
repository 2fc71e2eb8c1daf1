"""Shared pytest fixtures for vmfleet tests."""

import zipfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vmfleet.workflows import UrlArchiveFetcher

BUNDLE_ROOT = "vmfleet-workflows-main"

WORKFLOWS = {
    "test-workflow1": """
description: The first test workflow
version: "0.1"
instances:
  test-workflow1:
    limits:
      min-cpu: 2
      min-mem: 2G
      min-disk: 25G
    timeout: 600
    cloud-init:
      vendor-data: |
        runcmd:
          - echo "Have fun!"
""",
    "test-workflow2": """
description: Another test workflow
version: "0.1"
instances:
  test-workflow2:
    image: "daily:bionic"
    limits:
      min-cpu: 4
      min-mem: 4G
      min-disk: 50G
""",
    "no-image-workflow": """
description: A workflow without an image
version: "1.0"
""",
    "custom-image-workflow": """
description: Boots a custom image
version: "2"
instances:
  custom-image-workflow:
    image: https://example.com/images/custom.img
""",
    "arch-only": """
description: An arch-only workflow
version: "0.1"
runs-on:
  - arm64
""",
    "missing-description-workflow": """
version: "0.1"
""",
    "missing-version-workflow": """
description: No version here
""",
    "invalid-description-workflow": """
description:
  nested: mapping
version: "0.1"
""",
    "invalid-version-workflow": """
description: Bad version
version: [1, 2]
""",
    "invalid-arch": """
description: Unknown architecture
version: "0.1"
runs-on:
  cpu: z80
""",
    "42-invalid-hostname-workflow": """
description: Name starts with a digit
version: "0.1"
""",
    "invalid-image-workflow": """
description: Unsupported image scheme
version: "0.1"
instances:
  invalid-image-workflow:
    image: s3://bucket/image.img
""",
    "invalid-cpu-workflow": """
description: Bad CPU minimum
version: "0.1"
instances:
  invalid-cpu-workflow:
    limits:
      min-cpu: -2
""",
    "invalid-memory-size-workflow": """
description: Bad memory minimum
version: "0.1"
instances:
  invalid-memory-size-workflow:
    limits:
      min-mem: 2Gx
""",
    "invalid-disk-space-workflow": """
description: Bad disk minimum
version: "0.1"
instances:
  invalid-disk-space-workflow:
    limits:
      min-disk: lots
""",
    "invalid-cloud-init-workflow": """
description: Broken cloud-init
version: "0.1"
instances:
  invalid-cloud-init-workflow:
    cloud-init:
      vendor-data: "runcmd: [echo"
""",
    "invalid-timeout-workflow": """
description: Bad timeout
version: "0.1"
instances:
  invalid-timeout-workflow:
    timeout: 1h
""",
}

VALID_WORKFLOWS = ["test-workflow1", "test-workflow2", "no-image-workflow", "custom-image-workflow"]
INVALID_WORKFLOWS = [name for name in WORKFLOWS if name.startswith(("invalid", "missing", "42-"))]


def make_bundle(path: Path, workflows: dict[str, str] | None = None) -> Path:
    """Write a workflow bundle zip laid out like the published one."""
    workflows = WORKFLOWS if workflows is None else workflows
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(f"{BUNDLE_ROOT}/README.md", "Workflows for vmfleet\n")
        archive.writestr(f"{BUNDLE_ROOT}/v0/old-workflow.yaml", "description: old\nversion: '0'\n")
        for name, content in workflows.items():
            archive.writestr(f"{BUNDLE_ROOT}/v1/{name}.yaml", content)
    return path


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class ScriptedFetcher:
    """
    Fetcher with scripted outcomes.

    Each call consumes one outcome: None performs a real download, an
    exception instance is raised. The last outcome repeats once exhausted.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [None]
        self.calls: list[tuple[str, Path]] = []
        self._real = UrlArchiveFetcher(timeout=5)

    def download(self, url: str, destination: Path) -> None:
        index = min(len(self.calls), len(self.outcomes) - 1)
        self.calls.append((url, destination))
        outcome = self.outcomes[index]
        if outcome is not None:
            raise outcome
        self._real.download(url, destination)

    def last_modified(self, destination: Path):
        return self._real.last_modified(destination)


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def bundle(tmp_path):
    """Workflow bundle zip on disk."""
    return make_bundle(tmp_path / "remote" / "workflows.zip")


@pytest.fixture
def bundle_url(bundle):
    """file:// URL of the workflow bundle."""
    return bundle.as_uri()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_config(tmp_path, bundle_url):
    """Config file pointing at the test bundle."""
    config_file = tmp_path / "config" / "config.yaml"
    config_file.parent.mkdir()
    config_file.write_text(
        f"""
workflows:
  url: "{bundle_url}"
  cache_dir: "{tmp_path / "cache"}"
  ttl_seconds: 60
  compatibility_tag: x86_64

client:
  primary_name: primary

logging:
  level: ERROR
"""
    )
    return config_file
