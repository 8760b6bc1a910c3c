"""Local workflow definition models.

A definition is the authoritative description of a workflow: an ordered chain of
steps plus the steps run on error and (optionally) on cancellation. Step bodies
may be authored either as source text or as plain Python callables; the
canonicalizer turns the latter into text before anything is hashed or sent.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

StepBody = str | Callable[..., Any]


class StepDefinition(BaseModel):
    """A single workflow step."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    body: StepBody
    fallback: StepBody | None = None
    timeout: int | None = Field(default=None, ge=0, description="Step timeout in seconds")
    retry: int | None = Field(default=None, ge=0)

    # Only present when the step was exported from the service.
    identifier: str | None = Field(
        default=None, validation_alias=AliasChoices("identifier", "uuid")
    )


class WorkflowDefinition(BaseModel):
    """A workflow as defined locally."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    version: str | None = None
    timeout: int | None = Field(default=None, ge=0, description="Workflow timeout in seconds")
    chain: tuple[StepDefinition, ...] = ()
    onerror: tuple[StepDefinition, ...] = ()
    oncancel: tuple[StepDefinition, ...] | None = None

    identifier: str | None = Field(
        default=None, validation_alias=AliasChoices("identifier", "uuid")
    )

    @property
    def display_name(self) -> str:
        """Name the workflow is registered under remotely ("name-version")."""

        if self.version:
            return f"{self.name}-{self.version}"
        return self.name

    def steps(self) -> dict[str, tuple[StepDefinition, ...]]:
        """Return the chain, onerror and oncancel step lists keyed by field name."""

        return {
            "chain": self.chain,
            "onerror": self.onerror,
            "oncancel": self.oncancel or (),
        }
