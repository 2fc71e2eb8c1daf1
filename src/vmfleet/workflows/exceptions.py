"""
Errors raised by the workflow catalog.

FetchFailure and ArchiveCorrupt are expected remote/environment failures and
are recovered from during a refresh. Everything else is propagated to callers.
"""


class WorkflowError(Exception):
    """Base class for workflow catalog errors."""


class FetchFailure(WorkflowError):
    """The workflow bundle could not be downloaded."""

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(f"failed to download from '{url}': {message}")


class ArchiveCorrupt(WorkflowError):
    """The downloaded bundle is not a readable archive."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SchemaViolation(WorkflowError):
    """A workflow document failed validation."""

    def __init__(self, workflow: str, field: str, message: str):
        self.workflow = workflow
        self.field = field
        self.message = message
        super().__init__(message)

    @property
    def log_message(self) -> str:
        return f"Invalid workflow: {self.message}"


class InvalidWorkflowName(SchemaViolation):
    """The workflow name cannot be used as an instance host name."""

    def __init__(self, workflow: str):
        super().__init__(workflow, "name", f"Invalid workflow name '{workflow}': must be a valid host name")

    @property
    def log_message(self) -> str:
        return self.message


class UnknownWorkflow(WorkflowError, LookupError):
    """No workflow with the given name or alias exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown workflow: {name}")


class IncompatibleWorkflow(WorkflowError):
    """The workflow exists but does not run on this host's architecture."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)


class WorkflowMinimumViolation(WorkflowError):
    """A requested resource is below the workflow's minimum."""

    def __init__(self, resource: str, required: str):
        self.resource = resource
        self.required = required
        super().__init__(f"{resource} value too small for workflow, minimum is {required}")
