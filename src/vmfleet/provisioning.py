"""
VM provisioning request - the description of an instance about to be created.

The request is owned by the caller and mutated in place when a workflow is
applied to it. Zero or empty values mean the caller has not expressed a
preference.
"""

from dataclasses import dataclass, field
from typing import Any

from .memory_size import MemorySize


@dataclass
class VMProvisioningRequest:
    """Resources and configuration requested for a new instance."""

    num_cores: int = 0
    mem_size: MemorySize = field(default_factory=MemorySize)
    disk_space: MemorySize = field(default_factory=MemorySize)
    vm_name: str = ""
    # Vendor-data document handed to cloud-init
    vendor_data_config: dict[str, Any] | None = None

    @property
    def has_cloud_init(self) -> bool:
        return bool(self.vendor_data_config)
