"""Canonical (transmittable, hashable) form of a workflow definition."""

from __future__ import annotations

import inspect
import textwrap
from typing import Any

from wf_client.definitions.models import StepBody, StepDefinition, WorkflowDefinition
from wf_client.errors import DefinitionError


def body_text(body: StepBody) -> str:
    """Return the source text of a step body.

    Text bodies are returned unchanged. Callables are replaced by their exact
    source, so re-formatting a function changes its text even when its
    behaviour does not.

    Raises:
        DefinitionError: The body is a lambda (its source is the whole
            enclosing line) or its source cannot be read.
    """

    if isinstance(body, str):
        return body
    if getattr(body, "__name__", None) == "<lambda>":
        raise DefinitionError("Step bodies must be named functions or text, not lambdas")
    try:
        source = inspect.getsource(body)
    except (OSError, TypeError) as e:
        raise DefinitionError(f"Unable to read the source of step body {body!r}") from e
    return textwrap.dedent(source)


def _canonical_step(step: StepDefinition) -> StepDefinition:
    fallback = body_text(step.fallback) if step.fallback is not None else None
    return step.model_copy(
        update={"body": body_text(step.body), "fallback": fallback, "identifier": None}
    )


def _canonical_steps(steps: tuple[StepDefinition, ...]) -> tuple[StepDefinition, ...]:
    return tuple(_canonical_step(step) for step in steps)


def canonicalize(definition: WorkflowDefinition) -> WorkflowDefinition:
    """Return ``definition`` with text bodies and no server-assigned identifiers.

    Idempotent: canonicalizing a canonical definition returns an equal one.
    """

    oncancel = None if definition.oncancel is None else _canonical_steps(definition.oncancel)
    return definition.model_copy(
        update={
            "chain": _canonical_steps(definition.chain),
            "onerror": _canonical_steps(definition.onerror),
            "oncancel": oncancel,
            "identifier": None,
        }
    )


def step_payloads(steps: tuple[StepDefinition, ...]) -> list[dict[str, Any]]:
    """JSON-ready mappings for already canonical steps (unset fields omitted)."""

    return [step.model_dump(mode="json", exclude_none=True) for step in steps]


def workflow_payload(definition: WorkflowDefinition) -> dict[str, Any]:
    """Build the request body used to create or update the remote workflow."""

    canonical = canonicalize(definition)
    payload = canonical.model_dump(mode="json", exclude_none=True)
    payload["name"] = canonical.display_name
    return payload
