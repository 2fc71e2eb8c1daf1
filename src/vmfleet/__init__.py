"""
vmfleet (vmf) - Lightweight VM fleet manager control plane

Provides:
- A workflow catalog fetched from a remote zip bundle, cached with a TTL
- Strict per-field validation of workflow templates
- Merging of workflow minimums into VM provisioning requests
- Client-side request builders for instance commands (stop, mount)
"""

__version__ = "0.1.0"
__package_name__ = "vmfleet"
__short_name__ = "vmf"
