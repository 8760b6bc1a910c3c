"""Error taxonomy for the workflow API client.

Everything raised by this package derives from :class:`WfClientError`.
"""

from __future__ import annotations


class WfClientError(Exception):
    """Base class for all client errors."""


class RemoteError(WfClientError):
    """The workflow API answered a request with an error status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(RemoteError):
    """The request never got a response (connection refused, timeout, ...)."""


class NotFound(RemoteError):
    """The requested remote resource does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class ProtocolViolation(WfClientError):
    """A response does not have the shape the client requires."""


class DefinitionError(WfClientError):
    """A local workflow definition is missing or invalid."""


class UnresolvedWorkflow(WfClientError):
    """No remote identifier is known for the referenced workflow."""

    def __init__(self, workflow: str | None) -> None:
        super().__init__(f"No identifier resolved for workflow {workflow!r}")
        self.workflow = workflow


class ConnectFailed(WfClientError):
    """The bootstrapper gave up before every workflow was reconciled."""

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        super().__init__(f"Unable to sync workflows after {attempts} attempt(s): {last_error}")
        self.last_error = last_error
        self.attempts = attempts
