"""
Provisioning applier - Merges a workflow into a VM provisioning request.

Workflow minimums act as floors and as defaults. A value the caller already
set is never lowered or replaced; it is only rejected when it falls short.
"""

from ..constants import CORES_RESOURCE, DISK_RESOURCE, MEMORY_RESOURCE
from ..memory_size import MemorySize
from ..provisioning import VMProvisioningRequest
from .exceptions import WorkflowMinimumViolation
from .models import ImageQuery, WorkflowDefinition


def _merge_cores(requested: int, minimum: int | None) -> int:
    if minimum is None:
        return requested
    if requested == 0:
        return minimum
    if requested < minimum:
        raise WorkflowMinimumViolation(CORES_RESOURCE, str(minimum))
    return requested


def _merge_size(resource: str, requested: MemorySize, minimum: MemorySize | None) -> MemorySize:
    if minimum is None:
        return requested
    if requested.is_zero:
        return minimum
    if requested < minimum:
        raise WorkflowMinimumViolation(resource, str(minimum))
    return requested


def apply_workflow(workflow: WorkflowDefinition, request: VMProvisioningRequest) -> ImageQuery:
    """
    Apply a workflow to a provisioning request in place.

    Every resource is checked before anything is written, so a request that
    fails a minimum is left exactly as it was.

    Args:
        workflow: Validated workflow definition
        request: Request to update

    Returns:
        The image the workflow boots

    Raises:
        WorkflowMinimumViolation: If a caller-set resource is below the minimum
    """
    num_cores = _merge_cores(request.num_cores, workflow.min_cores)
    mem_size = _merge_size(MEMORY_RESOURCE, request.mem_size, workflow.min_memory)
    disk_space = _merge_size(DISK_RESOURCE, request.disk_space, workflow.min_disk)

    request.num_cores = num_cores
    request.mem_size = mem_size
    request.disk_space = disk_space

    if not request.has_cloud_init:
        request.vendor_data_config = workflow.cloud_init

    return workflow.image
