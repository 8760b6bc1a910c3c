"""Content digests used to decide whether a remote workflow needs an update.

Both sides are reduced to the same shape before hashing: server-assigned step
identifiers are stripped from the remote record, unset (null) fields are
dropped on both sides, and object keys are sorted. Step order is kept.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from wf_client.api.models import RemoteWorkflowRecord
from wf_client.definitions.canonical import canonicalize, step_payloads
from wf_client.definitions.models import WorkflowDefinition

SERVER_ASSIGNED_STEP_KEYS = frozenset({"uuid", "identifier"})


@dataclass(frozen=True, slots=True)
class WorkflowDigest:
    chain: str
    onerror: str
    oncancel: str

    def matches(self, other: WorkflowDigest, *, compare_cancel: bool = False) -> bool:
        if self.chain != other.chain or self.onerror != other.onerror:
            return False
        if compare_cancel:
            return self.oncancel == other.oncancel
        return True


def strip_step(step: Mapping[str, Any]) -> dict[str, Any]:
    """Drop server-assigned identifiers and null fields from a step mapping."""

    return {
        key: value
        for key, value in step.items()
        if key not in SERVER_ASSIGNED_STEP_KEYS and value is not None
    }


def step_list_digest(steps: Iterable[Mapping[str, Any]]) -> str:
    """MD5 hex digest of an ordered step list."""

    encoded = json.dumps(
        [dict(step) for step in steps],
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return hashlib.md5(encoded, usedforsecurity=False).hexdigest()


def local_digest(definition: WorkflowDefinition) -> WorkflowDigest:
    steps = canonicalize(definition).steps()
    return WorkflowDigest(
        chain=step_list_digest(step_payloads(steps["chain"])),
        onerror=step_list_digest(step_payloads(steps["onerror"])),
        oncancel=step_list_digest(step_payloads(steps["oncancel"])),
    )


def remote_digest(record: RemoteWorkflowRecord) -> WorkflowDigest:
    return WorkflowDigest(
        chain=step_list_digest(strip_step(step) for step in record.chain),
        onerror=step_list_digest(strip_step(step) for step in record.onerror),
        oncancel=step_list_digest(strip_step(step) for step in record.oncancel or []),
    )


def workflows_equivalent(
    definition: WorkflowDefinition,
    record: RemoteWorkflowRecord,
    *,
    compare_cancel: bool = False,
) -> bool:
    """Return True when the remote record already matches the local definition.

    Only the chain and onerror lists are compared unless ``compare_cancel`` is
    set.
    """

    return local_digest(definition).matches(remote_digest(record), compare_cancel=compare_cancel)
