"""
Centralized constants for vmfleet.

Workflow bundle layout, schema vocabularies and defaults shared across modules
are defined here to avoid duplication.
"""

# Public workflow bundle (zip of the repository's main branch)
DEFAULT_WORKFLOWS_URL = "https://codeload.github.com/canonical/multipass-workflows/zip/refs/heads/main"

# Directory inside the bundle holding the current schema version of workflows
WORKFLOWS_DIR_VERSION = "v1"

# File suffixes treated as workflow documents
WORKFLOW_SUFFIXES = {".yaml", ".yml"}

# Refresh the cached bundle every 15 minutes
DEFAULT_WORKFLOWS_TTL_SECONDS = 15 * 60

# Socket timeout for bundle downloads
DEFAULT_DOWNLOAD_TIMEOUT_SECONDS = 30.0

# Image schemes a workflow may reference directly
SUPPORTED_IMAGE_SCHEMES = {"file", "http", "https"}

# Release used when a workflow does not name an image
DEFAULT_IMAGE_RELEASE = "default"

# Spellings of the same architecture, mapped to one canonical tag
ARCHITECTURE_ALIASES = {
    "amd64": "x86_64",
    "aarch64": "arm64",
}

# Labels used when a request falls short of a workflow minimum
CORES_RESOURCE = "Number of CPUs"
MEMORY_RESOURCE = "Memory size"
DISK_RESOURCE = "Disk space"

# Instance-side uid/gid used for default mount mappings
DEFAULT_INSTANCE_ID = 1000

# Instance assumed by client commands when no name is given
DEFAULT_PRIMARY_NAME = "primary"
