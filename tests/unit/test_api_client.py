"""Unit tests for the workflow API client (HTTP session mocked)."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests

from wf_client.api.client import WorkflowApiClient
from wf_client.errors import NotFound, ProtocolViolation, RemoteError, TransportError


def _response(status_code: int = 200, json_data: Any = None, text: str = "") -> Mock:
    resp = Mock(spec=requests.Response)
    resp.status_code = status_code
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
    else:
        resp.json.return_value = json_data
    resp.text = text
    return resp


@pytest.fixture
def session() -> Mock:
    session = Mock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def client(session: Mock) -> WorkflowApiClient:
    return WorkflowApiClient(base_url="http://wf.test/", timeout_seconds=5.0, session=session)


def test_base_url_is_normalized(client: WorkflowApiClient, session: Mock) -> None:
    assert client.base_url == "http://wf.test"
    assert session.headers["Accept"] == "application/json"


def test_requires_base_url() -> None:
    with pytest.raises(ValueError):
        WorkflowApiClient(base_url="  ")


def test_ping(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(json_data={"pong": True})

    assert client.ping() == {"pong": True}
    session.request.assert_called_once_with("GET", "http://wf.test/ping", timeout=5.0)


def test_find_workflow_requires_exact_name(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(
        json_data=[
            {"uuid": "wf-a", "name": "say-1.0.0-beta", "chain": [], "onerror": []},
            {"uuid": "wf-b", "name": "say-1.0.0", "chain": [], "onerror": []},
            {"uuid": "wf-c", "name": "say-1.0.0", "chain": [], "onerror": []},
        ]
    )

    record = client.find_workflow("say-1.0.0")

    assert record is not None
    assert record.identifier == "wf-b"
    session.request.assert_called_once_with(
        "GET", "http://wf.test/workflows", timeout=5.0, params={"name": "say-1.0.0"}
    )


def test_find_workflow_ignores_substring_matches(
    client: WorkflowApiClient, session: Mock
) -> None:
    session.request.return_value = _response(
        json_data=[{"uuid": "wf-a", "name": "say-1.0.0-beta", "chain": [], "onerror": []}]
    )

    assert client.find_workflow("say-1.0.0") is None


def test_find_workflow_rejects_non_list(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(json_data={"name": "say"})

    with pytest.raises(ProtocolViolation):
        client.find_workflow("say")


def test_get_workflow_not_found(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(status_code=404, json_data={"message": "nope"})

    with pytest.raises(NotFound):
        client.get_workflow("wf-missing")


def test_get_workflow_accepts_identifier_field(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(
        json_data={
            "identifier": "wf-1",
            "name": "say-1.0.0",
            "chain": [{"uuid": "s-1", "name": "say.hi", "body": "x"}],
            "onerror": [],
            "max_attempts": 3,
        }
    )

    record = client.get_workflow("wf-1")

    assert record.identifier == "wf-1"
    assert record.chain[0]["uuid"] == "s-1"
    assert record.oncancel is None
    session.request.assert_called_once_with("GET", "http://wf.test/workflows/wf-1", timeout=5.0)


def test_transport_failures_are_transport_errors(
    client: WorkflowApiClient, session: Mock
) -> None:
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(TransportError):
        client.find_workflow("say")


def test_server_errors_are_remote_errors(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(
        status_code=503, json_data={"message": "Service unavailable"}
    )

    with pytest.raises(RemoteError) as excinfo:
        client.create_workflow({"name": "say"})

    assert excinfo.value.status_code == 503
    assert "Service unavailable" in str(excinfo.value)
    assert not isinstance(excinfo.value, (NotFound, TransportError))


def test_invalid_json_is_a_protocol_violation(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(json_data=ValueError("Expecting value"))

    with pytest.raises(ProtocolViolation):
        client.ping()


def test_create_workflow_returns_identifier(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(json_data={"uuid": "wf-new", "name": "say-1.0.0"})

    assert client.create_workflow({"name": "say-1.0.0"}) == "wf-new"
    session.request.assert_called_once_with(
        "POST", "http://wf.test/workflows", timeout=5.0, json={"name": "say-1.0.0"}
    )


def test_create_workflow_without_identifier_is_a_protocol_violation(
    client: WorkflowApiClient, session: Mock
) -> None:
    session.request.return_value = _response(json_data={"name": "say-1.0.0"})

    with pytest.raises(ProtocolViolation):
        client.create_workflow({"name": "say-1.0.0"})


def test_update_workflow_keeps_identifier(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(json_data={"uuid": "wf-1"})

    assert client.update_workflow("wf-1", {"name": "say-1.0.0"}) == "wf-1"
    session.request.assert_called_once_with(
        "PUT", "http://wf.test/workflows/wf-1", timeout=5.0, json={"name": "say-1.0.0"}
    )


def test_update_workflow_with_other_identifier_is_a_protocol_violation(
    client: WorkflowApiClient, session: Mock
) -> None:
    session.request.return_value = _response(json_data={"uuid": "wf-2"})

    with pytest.raises(ProtocolViolation):
        client.update_workflow("wf-1", {"name": "say-1.0.0"})


def test_delete_workflow(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(status_code=204)

    client.delete_workflow("wf-1")

    session.request.assert_called_once_with("DELETE", "http://wf.test/workflows/wf-1", timeout=5.0)


def test_create_job_forwards_headers(client: WorkflowApiClient, session: Mock) -> None:
    session.request.return_value = _response(
        json_data={"uuid": "job-1", "execution": "queued", "target": "t"}
    )
    headers = {"x-request-id": "f923df69-0e55-4c1a-b31b-0da8183a5f81"}

    data = client.create_job({"target": "t", "workflow": "wf-1"}, headers=headers)

    assert data["uuid"] == "job-1"
    session.request.assert_called_once_with(
        "POST",
        "http://wf.test/jobs",
        timeout=5.0,
        json={"target": "t", "workflow": "wf-1"},
        headers=headers,
    )


def test_job_pass_through_reads(client: WorkflowApiClient, session: Mock) -> None:
    session.request.side_effect = [
        _response(json_data={"uuid": "job-1", "execution": "running", "task": "say"}),
        _response(json_data=[{"progress": 10, "message": "Under Fire Do not Stop"}]),
        _response(status_code=200),
        _response(json_data=[{"uuid": "job-1", "execution": "running"}]),
    ]

    job = client.get_job("job-1")
    info = client.get_job_info("job-1")
    client.post_job_info("job-1", {"progress": 20})
    jobs = client.list_jobs({"task": "say"})

    assert job.identifier == "job-1"
    assert job.execution == "running"
    assert info[0]["progress"] == 10
    assert [j.identifier for j in jobs] == ["job-1"]

    calls = session.request.call_args_list
    assert calls[1].args == ("GET", "http://wf.test/jobs/job-1/info")
    assert calls[2].args == ("POST", "http://wf.test/jobs/job-1/info")
    assert calls[2].kwargs["json"] == {"progress": 20}
    assert calls[3].kwargs["params"] == {"task": "say"}


def test_close_closes_session(client: WorkflowApiClient, session: Mock) -> None:
    client.close()

    session.close.assert_called_once_with()
