"""High-level client: sync workflows at startup, then queue jobs against them."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from wf_client.api.client import WorkflowApiClient
from wf_client.api.models import Job, RemoteWorkflowRecord
from wf_client.config import WfClientSettings
from wf_client.definitions.loader import DefinitionLoader, DirectoryDefinitionLoader
from wf_client.jobs import JobRequest, JobSubmitter
from wf_client.sync.bootstrap import BootstrapResult, ConnectionBootstrapper
from wf_client.sync.cache import IdentifierCache
from wf_client.sync.reconciler import ReconcileResult, WorkflowReconciler

logger = logging.getLogger(__name__)


class WfClient:
    """Keeps the configured workflows registered and submits jobs for them.

    Each instance owns its identifier cache; nothing is shared between
    instances.
    """

    def __init__(
        self,
        settings: WfClientSettings,
        *,
        api: WorkflowApiClient | None = None,
        loader: DefinitionLoader | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._api = api or WorkflowApiClient(
            base_url=settings.url, timeout_seconds=settings.request_timeout_seconds
        )
        self._loader = loader or DirectoryDefinitionLoader(settings.path)
        self._cache = IdentifierCache()
        self._reconciler = WorkflowReconciler(
            api=self._api,
            loader=self._loader,
            cache=self._cache,
            force_replace=settings.force_replace,
            force_md5_check=settings.force_md5_check,
            compare_cancel=settings.compare_cancel,
        )
        self._submitter = JobSubmitter(api=self._api, cache=self._cache)
        self._sleep = sleep

    @property
    def identifiers(self) -> Mapping[str, str]:
        """Read-only view of the resolved workflow identifiers."""

        return self._cache.snapshot()

    # Workflow sync

    def connect(self) -> BootstrapResult:
        """Sync all configured workflows, retrying with backoff.

        Failures are returned in the result, never raised.
        """

        bootstrapper = ConnectionBootstrapper(
            reconciler=self._reconciler,
            workflows=self._settings.workflows,
            backoff=self._settings.backoff(),
            sleep=self._sleep,
        )
        return bootstrapper.run()

    def connect_in_background(
        self, on_complete: Callable[[BootstrapResult], None] | None = None
    ) -> threading.Thread:
        """Run :meth:`connect` on a daemon thread.

        Jobs for workflows resolved by an earlier sync can be submitted while
        it runs.
        """

        def _run() -> None:
            try:
                result = self.connect()
            except Exception:
                logger.exception("Background workflow sync failed")
                return
            if on_complete is not None:
                on_complete(result)

        thread = threading.Thread(target=_run, name="wf-client-sync", daemon=True)
        thread.start()
        return thread

    def init_workflows(self) -> list[ReconcileResult]:
        """Sync all configured workflows once, without retries. Errors propagate."""

        return [self._reconciler.reconcile(name) for name in self._settings.workflows]

    def load_workflow(self, name: str) -> ReconcileResult:
        """Sync one workflow (configured or not) and cache its identifier."""

        return self._reconciler.reconcile(name)

    def find_workflow(self, name: str) -> RemoteWorkflowRecord | None:
        return self._api.find_workflow(name)

    def get_workflow(self, identifier: str) -> RemoteWorkflowRecord:
        return self._api.get_workflow(identifier)

    def delete_workflow(self, identifier: str) -> None:
        self._api.delete_workflow(identifier)

    def ping(self) -> Any:
        return self._api.ping()

    # Jobs

    def create_job(self, request: JobRequest) -> Job:
        return self._submitter.submit(request)

    def get_job(self, identifier: str) -> Job:
        return self._api.get_job(identifier)

    def get_job_info(self, identifier: str) -> list[dict[str, Any]]:
        return self._api.get_job_info(identifier)

    def post_job_info(self, identifier: str, info: dict[str, Any]) -> None:
        self._api.post_job_info(identifier, info)

    def list_jobs(self, query: dict[str, Any] | None = None) -> list[Job]:
        return self._api.list_jobs(query)

    def close(self) -> None:
        self._api.close()

    def __enter__(self) -> WfClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
