"""Test configuration and fixtures."""

from __future__ import annotations

import copy
import itertools
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from wf_client.api.models import Job, RemoteWorkflowRecord
from wf_client.config import WfClientSettings
from wf_client.definitions.canonical import workflow_payload
from wf_client.definitions.models import StepDefinition, WorkflowDefinition
from wf_client.errors import DefinitionError, NotFound

FIXTURES = Path(__file__).parent / "fixtures"

WRITE_CALLS = {"create_workflow", "update_workflow", "delete_workflow"}


class DictLoader:
    """Definition loader backed by a plain dict."""

    def __init__(self, definitions: dict[str, WorkflowDefinition]) -> None:
        self.definitions = dict(definitions)

    def load(self, name: str) -> WorkflowDefinition:
        try:
            return self.definitions[name]
        except KeyError:
            raise DefinitionError(f"No definition for {name!r}") from None


class FakeWorkflowApi:
    """In-memory stand-in for the workflow API.

    Stored steps get server-assigned ``uuid`` keys, like the real service.
    """

    def __init__(self) -> None:
        self.workflows: dict[str, dict[str, Any]] = {}
        self.jobs: dict[str, dict[str, Any]] = {}
        self.job_info: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[str] = []
        self.find_errors: list[Exception] = []
        self.last_job_headers: dict[str, str] | None = None
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids):04d}"

    @property
    def writes(self) -> list[str]:
        return [call for call in self.calls if call in WRITE_CALLS]

    def _store(self, identifier: str, payload: dict[str, Any]) -> None:
        record = copy.deepcopy(payload)
        record["uuid"] = identifier
        for key in ("chain", "onerror", "oncancel"):
            for step in record.get(key) or []:
                step["uuid"] = self._next_id("step")
        self.workflows[identifier] = record

    def ping(self) -> dict[str, Any]:
        self.calls.append("ping")
        return {"pong": True}

    def find_workflow(self, name: str) -> RemoteWorkflowRecord | None:
        self.calls.append("find_workflow")
        if self.find_errors:
            raise self.find_errors.pop(0)
        for record in self.workflows.values():
            if record["name"] == name:
                return RemoteWorkflowRecord.model_validate(record)
        return None

    def get_workflow(self, identifier: str) -> RemoteWorkflowRecord:
        self.calls.append("get_workflow")
        if identifier not in self.workflows:
            raise NotFound(f"workflow {identifier}")
        return RemoteWorkflowRecord.model_validate(self.workflows[identifier])

    def create_workflow(self, payload: dict[str, Any]) -> str:
        self.calls.append("create_workflow")
        identifier = self._next_id("wf")
        self._store(identifier, payload)
        return identifier

    def update_workflow(self, identifier: str, payload: dict[str, Any]) -> str:
        self.calls.append("update_workflow")
        if identifier not in self.workflows:
            raise NotFound(f"workflow {identifier}")
        self._store(identifier, payload)
        return identifier

    def delete_workflow(self, identifier: str) -> None:
        self.calls.append("delete_workflow")
        if self.workflows.pop(identifier, None) is None:
            raise NotFound(f"workflow {identifier}")

    def create_job(
        self, payload: dict[str, Any], *, headers: dict[str, str] | None = None
    ) -> dict[str, Any]:
        self.calls.append("create_job")
        self.last_job_headers = headers
        identifier = self._next_id("job")
        job = {**payload, "uuid": identifier, "execution": "queued"}
        self.jobs[identifier] = job
        return dict(job)

    def get_job(self, identifier: str) -> Job:
        self.calls.append("get_job")
        if identifier not in self.jobs:
            raise NotFound(f"job {identifier}")
        return Job.model_validate(self.jobs[identifier])

    def get_job_info(self, identifier: str) -> list[dict[str, Any]]:
        self.calls.append("get_job_info")
        return list(self.job_info.get(identifier, []))

    def post_job_info(self, identifier: str, info: dict[str, Any]) -> None:
        self.calls.append("post_job_info")
        self.job_info.setdefault(identifier, []).append(dict(info))

    def list_jobs(self, query: dict[str, Any] | None = None) -> list[Job]:
        self.calls.append("list_jobs")
        query = query or {}
        return [
            Job.model_validate(job)
            for job in self.jobs.values()
            if all(str(job.get(key)) == str(value) for key, value in query.items())
        ]

    def close(self) -> None:
        self.calls.append("close")


@pytest.fixture
def workflows_dir() -> Path:
    """Directory holding the `say` and `foobar` test definitions."""
    return FIXTURES / "workflows"


@pytest.fixture
def fake_api() -> FakeWorkflowApi:
    return FakeWorkflowApi()


@pytest.fixture
def say_definition() -> WorkflowDefinition:
    """A two-step definition with text bodies."""
    return WorkflowDefinition(
        name="say",
        version="1.0.0",
        timeout=20,
        chain=(
            StepDefinition(
                name="say.hi", timeout=10, retry=1, body="def hi(job):\n    return 'hi'\n"
            ),
            StepDefinition(
                name="say.hello", timeout=10, retry=1, body="def hello(job):\n    return 'hello'\n"
            ),
        ),
        onerror=(
            StepDefinition(name="On error", body="def on_error(job):\n    raise RuntimeError\n"),
        ),
    )


@pytest.fixture
def make_loader() -> type[DictLoader]:
    return DictLoader


@pytest.fixture
def make_record() -> Callable[..., RemoteWorkflowRecord]:
    """Build the remote record the service would hold for a definition."""

    def _make(
        definition: WorkflowDefinition, identifier: str = "wf-existing"
    ) -> RemoteWorkflowRecord:
        payload = workflow_payload(definition)
        payload["uuid"] = identifier
        for key in ("chain", "onerror", "oncancel"):
            for idx, step in enumerate(payload.get(key) or []):
                step["uuid"] = f"{identifier}-{key}-{idx}"
        return RemoteWorkflowRecord.model_validate(payload)

    return _make


@pytest.fixture
def settings(workflows_dir: Path, monkeypatch: pytest.MonkeyPatch) -> WfClientSettings:
    """Settings pointing at the test definitions, isolated from the environment."""
    for var in (
        "WF_FORCE_REPLACE",
        "WF_FORCE_MD5_CHECK",
        "WF_COMPARE_CANCEL",
        "WF_RETRY_MAX_ATTEMPTS",
        "WF_WORKFLOWS",
    ):
        monkeypatch.delenv(var, raising=False)
    return WfClientSettings(
        _env_file=None,
        url="http://wf.test",
        path=workflows_dir,
        workflows=["say"],
        retry_max_attempts=3,
    )
