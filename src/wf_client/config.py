"""Settings for the workflow API client.

Configuration is loaded from:
- environment variables prefixed with ``WF_``
- and a local `.env` file (if present)

``WF_WORKFLOWS`` is a JSON list, e.g. ``WF_WORKFLOWS='["say", "foobar"]'``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wf_client.logging import LogFormat
from wf_client.sync.bootstrap import (
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_MIN_DELAY_MS,
    ExponentialBackoff,
)


class WfClientSettings(BaseSettings):
    """Settings for one client instance.

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WfClientSettings(_env_file=path_to_env)`.
    """

    # Empty by default; the validator below enforces that a URL is provided.
    url: str = Field(default="", description="Workflow API base URL")
    path: Path = Field(
        default=Path("workflows"),
        description="Directory holding the local workflow definitions",
    )
    workflows: list[str] = Field(
        default_factory=list,
        description="Workflow names to sync, in order",
    )

    force_replace: bool = Field(
        default=False,
        description="Update every existing remote workflow, even when unchanged",
    )
    force_md5_check: bool = Field(
        default=False,
        description="Update existing remote workflows whose step digests differ",
    )
    compare_cancel: bool = Field(
        default=False,
        description="Also compare oncancel steps when checking digests",
    )

    retry_min_delay_ms: int = Field(default=DEFAULT_MIN_DELAY_MS, ge=0)
    retry_max_delay_ms: int = Field(default=DEFAULT_MAX_DELAY_MS, ge=0)
    retry_max_attempts: int | None = Field(
        default=None,
        ge=1,
        description="Maximum sync attempts at startup (unset retries forever)",
    )

    request_timeout_seconds: float = Field(default=30.0, gt=0)
    log_level: str = Field(default="INFO", description="Root logging level")
    log_format: LogFormat = Field(default="json", description="json (default) or text")

    model_config = SettingsConfigDict(
        env_prefix="WF_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate(self) -> WfClientSettings:
        if not self.url.strip():
            raise ValueError("WF_URL is required")
        if self.retry_max_delay_ms < self.retry_min_delay_ms:
            raise ValueError("WF_RETRY_MAX_DELAY_MS must be >= WF_RETRY_MIN_DELAY_MS")
        return self

    def backoff(self) -> ExponentialBackoff:
        """Backoff policy for the startup sync."""

        return ExponentialBackoff(
            min_delay_ms=self.retry_min_delay_ms,
            max_delay_ms=self.retry_max_delay_ms,
            max_attempts=self.retry_max_attempts,
        )
