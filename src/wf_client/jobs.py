"""Job submission against resolved workflows."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wf_client.api.client import WorkflowApiClient
from wf_client.api.models import Job
from wf_client.errors import ProtocolViolation, UnresolvedWorkflow
from wf_client.sync.cache import IdentifierCache

logger = logging.getLogger(__name__)

QUEUED = "queued"


class JobRequest(BaseModel):
    """Everything needed to queue one job.

    The workflow is referenced either by its configured ``workflow`` name
    (resolved through the identifier cache) or directly by
    ``workflow_identifier``, which takes precedence.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: str = Field(min_length=1)
    workflow: str | None = None
    workflow_identifier: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Forwarded verbatim, e.g. a request correlation header",
    )


class JobSubmitter:
    def __init__(self, *, api: WorkflowApiClient, cache: IdentifierCache) -> None:
        self._api = api
        self._cache = cache

    def resolve(self, request: JobRequest) -> str:
        if request.workflow_identifier:
            return request.workflow_identifier
        if request.workflow:
            identifier = self._cache.get(request.workflow)
            if identifier:
                return identifier
        raise UnresolvedWorkflow(request.workflow)

    def submit(self, request: JobRequest) -> Job:
        """Queue a job and verify the service accepted it.

        Raises:
            UnresolvedWorkflow: No identifier is known; nothing is sent.
            ProtocolViolation: The response lacks an identifier or the job
                is not ``queued``.
        """

        identifier = self.resolve(request)
        payload = {**request.params, "target": request.target, "workflow": identifier}

        data = self._api.create_job(payload, headers=request.headers or None)
        try:
            job = Job.model_validate(data)
        except ValidationError as e:
            raise ProtocolViolation(f"Invalid create job response: {e}") from e
        if job.execution != QUEUED:
            raise ProtocolViolation(
                f"Job {job.identifier} was not queued (execution={job.execution!r})"
            )

        logger.info(
            "Job queued",
            extra={
                "job": job.identifier,
                "workflow": request.workflow,
                "workflow_identifier": identifier,
                "target": request.target,
            },
        )
        return job
