"""Exception types raised by the Terminus client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from terminus_client.models.workflow import Workflow


class TerminusError(Exception):
    """Base class for every error the client reports to the user."""


class WorkflowOwnerError(TerminusError):
    """A workflow was constructed without a usable owner context."""


class TransportError(TerminusError):
    """The API could not be reached or the connection broke mid-request."""


class ApiError(TerminusError):
    """The API answered with an HTTP error status."""

    def __init__(self, message: str, status_code: int, path: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.path = path


class WorkflowError(TerminusError):
    """Base for errors tied to a specific workflow handle."""

    def __init__(self, message: str, workflow: Workflow) -> None:
        super().__init__(message)
        self.workflow = workflow


class WorkflowFailedError(WorkflowError):
    """The server reported a terminal result other than ``succeeded``."""


class WorkflowTimeoutError(WorkflowError):
    """The workflow did not finish within the configured maximum wait."""

    def __init__(self, workflow: Workflow, waited: float) -> None:
        super().__init__(
            f"Workflow {workflow.id} still running after {waited:.0f}s",
            workflow,
        )
        self.waited = waited


class WorkflowCancelledError(WorkflowError):
    """The caller cancelled an in-progress wait."""

    def __init__(self, workflow: Workflow) -> None:
        super().__init__(f"Stopped waiting on workflow {workflow.id}", workflow)


class WorkflowBusyError(WorkflowError):
    """Another caller is already fetching or waiting on this workflow."""

    def __init__(self, workflow: Workflow) -> None:
        super().__init__(f"Workflow {workflow.id} is already being polled", workflow)
