"""REST client for the workflow API.

Each method is a single request/response. Nothing here retries: retries are
applied by the bootstrapper around a whole sync pass.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests
from pydantic import ValidationError

from wf_client.api.models import Job, RemoteWorkflowRecord
from wf_client.errors import NotFound, ProtocolViolation, RemoteError, TransportError

logger = logging.getLogger(__name__)


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return (resp.text or "").strip()[:200]
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return str(data)[:200]


def _identifier(data: object, *, context: str) -> str:
    if not isinstance(data, dict):
        raise ProtocolViolation(f"Unexpected {context} response: expected an object")
    value = data.get("identifier") or data.get("uuid")
    if not isinstance(value, str) or not value.strip():
        raise ProtocolViolation(f"Unexpected {context} response: missing identifier")
    return value


class WorkflowApiClient:
    """Small wrapper around the workflow API's REST surface."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("Workflow API base URL is required")

        self._base_url = base_url.strip().rstrip("/")
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": "wf-client",
            }
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self._url(path)
        logger.debug("Workflow API request", extra={"method": method, "url": url})
        try:
            resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if resp.status_code == 404:
            raise NotFound(f"{method} {url}: not found")
        if resp.status_code >= 400:
            raise RemoteError(
                f"{method} {url} returned HTTP {resp.status_code}: {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ProtocolViolation("Workflow API response is not valid JSON") from e

    @staticmethod
    def _record(data: object) -> RemoteWorkflowRecord:
        try:
            return RemoteWorkflowRecord.model_validate(data)
        except ValidationError as e:
            raise ProtocolViolation(f"Invalid workflow record: {e}") from e

    @staticmethod
    def _job(data: object) -> Job:
        try:
            return Job.model_validate(data)
        except ValidationError as e:
            raise ProtocolViolation(f"Invalid job record: {e}") from e

    def ping(self) -> Any:
        """Return the service's liveness payload."""

        return self._json(self._request("GET", "/ping"))

    # Workflows

    def find_workflow(self, name: str) -> RemoteWorkflowRecord | None:
        """Return the first workflow whose name is exactly ``name``.

        The name filter is also sent to the service, but matching is always
        re-checked locally: substring matches are never accepted.
        """

        if not name.strip():
            raise ValueError("Workflow name is required")

        data = self._json(self._request("GET", "/workflows", params={"name": name}))
        if not isinstance(data, list):
            raise ProtocolViolation("Unexpected list workflows response: expected a list")

        for item in data:
            if isinstance(item, dict) and item.get("name") == name:
                return self._record(item)
        return None

    def get_workflow(self, identifier: str) -> RemoteWorkflowRecord:
        """Fetch a workflow by identifier.

        Raises:
            NotFound: If no such workflow exists.
        """

        resp = self._request("GET", f"/workflows/{quote(identifier, safe='')}")
        return self._record(self._json(resp))

    def create_workflow(self, payload: dict[str, Any]) -> str:
        """Register a new workflow and return its identifier."""

        resp = self._request("POST", "/workflows", json=payload)
        identifier = _identifier(self._json(resp), context="create workflow")
        logger.info(
            "Workflow created",
            extra={"workflow": payload.get("name"), "identifier": identifier},
        )
        return identifier

    def update_workflow(self, identifier: str, payload: dict[str, Any]) -> str:
        """Replace an existing workflow in place. The identifier never changes."""

        resp = self._request("PUT", f"/workflows/{quote(identifier, safe='')}", json=payload)
        returned = _identifier(self._json(resp), context="update workflow")
        if returned != identifier:
            raise ProtocolViolation(
                f"Update of workflow {identifier} returned a different identifier {returned}"
            )
        logger.info(
            "Workflow updated",
            extra={"workflow": payload.get("name"), "identifier": identifier},
        )
        return returned

    def delete_workflow(self, identifier: str) -> None:
        self._request("DELETE", f"/workflows/{quote(identifier, safe='')}")
        logger.info("Workflow deleted", extra={"identifier": identifier})

    # Jobs

    def create_job(
        self, payload: dict[str, Any], *, headers: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """Queue a job. The raw response is returned for the caller to verify."""

        resp = self._request("POST", "/jobs", json=payload, headers=headers or None)
        data = self._json(resp)
        if not isinstance(data, dict):
            raise ProtocolViolation("Unexpected create job response: expected an object")
        return data

    def get_job(self, identifier: str) -> Job:
        resp = self._request("GET", f"/jobs/{quote(identifier, safe='')}")
        return self._job(self._json(resp))

    def get_job_info(self, identifier: str) -> list[dict[str, Any]]:
        resp = self._request("GET", f"/jobs/{quote(identifier, safe='')}/info")
        data = self._json(resp)
        if not isinstance(data, list):
            raise ProtocolViolation("Unexpected job info response: expected a list")
        return data

    def post_job_info(self, identifier: str, info: dict[str, Any]) -> None:
        self._request("POST", f"/jobs/{quote(identifier, safe='')}/info", json=info)

    def list_jobs(self, query: dict[str, Any] | None = None) -> list[Job]:
        resp = self._request("GET", "/jobs", params=query or None)
        data = self._json(resp)
        if not isinstance(data, list):
            raise ProtocolViolation("Unexpected list jobs response: expected a list")
        return [self._job(item) for item in data]

    def close(self) -> None:
        self._session.close()
