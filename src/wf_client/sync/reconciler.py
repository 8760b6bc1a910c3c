"""Per-workflow find / create / update decision."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from wf_client.api.client import WorkflowApiClient
from wf_client.api.models import RemoteWorkflowRecord
from wf_client.definitions.canonical import canonicalize, workflow_payload
from wf_client.definitions.digest import workflows_equivalent
from wf_client.definitions.loader import DefinitionLoader
from wf_client.definitions.models import WorkflowDefinition
from wf_client.errors import WfClientError
from wf_client.sync.cache import IdentifierCache

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    name: str
    display_name: str
    identifier: str
    action: SyncAction


class WorkflowReconciler:
    """Bring one remote workflow in line with its local definition.

    - no remote workflow with the display name: create it;
    - remote workflow found and ``force_replace``: update it unconditionally;
    - remote workflow found, ``force_md5_check`` and the digests differ: update it;
    - otherwise reuse the remote workflow as is.

    The identifier cache entry for the workflow is written only once the
    workflow has been resolved. Any error leaves it untouched and is re-raised.
    """

    def __init__(
        self,
        *,
        api: WorkflowApiClient,
        loader: DefinitionLoader,
        cache: IdentifierCache,
        force_replace: bool = False,
        force_md5_check: bool = False,
        compare_cancel: bool = False,
    ) -> None:
        self._api = api
        self._loader = loader
        self._cache = cache
        self._force_replace = force_replace
        self._force_md5_check = force_md5_check
        self._compare_cancel = compare_cancel

    def reconcile(self, name: str) -> ReconcileResult:
        definition = canonicalize(self._loader.load(name))
        display_name = definition.display_name

        try:
            existing = self._api.find_workflow(display_name)
        except WfClientError:
            logger.error("Error looking up workflow", extra={"workflow": display_name})
            raise

        if existing is None:
            try:
                identifier = self._api.create_workflow(workflow_payload(definition))
            except WfClientError:
                logger.error("Error creating workflow", extra={"workflow": display_name})
                raise
            action = SyncAction.CREATED

        elif self._needs_update(name, definition, existing):
            try:
                identifier = self._api.update_workflow(
                    existing.identifier, workflow_payload(definition)
                )
            except WfClientError:
                logger.error(
                    "Error updating workflow",
                    extra={"workflow": display_name, "identifier": existing.identifier},
                )
                raise
            action = SyncAction.UPDATED

        else:
            logger.debug(
                "Workflow exists",
                extra={"workflow": display_name, "identifier": existing.identifier},
            )
            identifier = existing.identifier
            action = SyncAction.UNCHANGED

        self._cache.set(name, identifier)
        return ReconcileResult(
            name=name, display_name=display_name, identifier=identifier, action=action
        )

    def _needs_update(
        self, name: str, definition: WorkflowDefinition, existing: RemoteWorkflowRecord
    ) -> bool:
        if self._force_replace:
            logger.debug("Replacing workflow", extra={"workflow": name})
            return True
        if not self._force_md5_check:
            return False

        equivalent = workflows_equivalent(
            definition, existing, compare_cancel=self._compare_cancel
        )
        if not equivalent:
            logger.debug("Workflow digest changed", extra={"workflow": name})
        return not equivalent
