"""Wire models for records returned by the workflow API."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RemoteWorkflowRecord(BaseModel):
    """A workflow as persisted by the service.

    Step bodies are text and steps may carry server-assigned identifiers, so
    the step lists are kept as raw mappings.
    """

    model_config = ConfigDict(extra="allow")

    identifier: str = Field(min_length=1, validation_alias=AliasChoices("identifier", "uuid"))
    name: str
    version: str | None = None
    chain: list[dict[str, Any]] = Field(default_factory=list)
    onerror: list[dict[str, Any]] = Field(default_factory=list)
    oncancel: list[dict[str, Any]] | None = None


class Job(BaseModel):
    """A job as returned by the service."""

    model_config = ConfigDict(extra="allow")

    identifier: str = Field(min_length=1, validation_alias=AliasChoices("identifier", "uuid"))
    execution: str | None = None
    workflow: str | None = None
    target: str | None = None
