"""Startup sync of the configured workflow set, retried with exponential backoff.

One attempt reconciles every configured workflow in order. The first failure
ends the attempt; the next attempt walks the whole list again. Workflows that
are already in sync cost one lookup and no writes, so re-walking is cheap.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace

from wf_client.errors import ConnectFailed, DefinitionError, ProtocolViolation, RemoteError
from wf_client.sync.reconciler import ReconcileResult, WorkflowReconciler

logger = logging.getLogger(__name__)

DEFAULT_MIN_DELAY_MS = 100
DEFAULT_MAX_DELAY_MS = 60_000


@dataclass
class ExponentialBackoff:
    """Retry state: the delay starts at ``min_delay_ms`` and doubles up to ``max_delay_ms``.

    ``max_attempts=None`` retries forever.
    """

    min_delay_ms: int = DEFAULT_MIN_DELAY_MS
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS
    max_attempts: int | None = None
    attempt: int = 0
    current_delay_ms: int | None = None

    def __post_init__(self) -> None:
        if self.min_delay_ms < 0:
            raise ValueError("min_delay_ms must be >= 0")
        if self.max_delay_ms < self.min_delay_ms:
            raise ValueError("max_delay_ms must be >= min_delay_ms")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 (or None for unbounded)")

    def fresh(self) -> ExponentialBackoff:
        return replace(self, attempt=0, current_delay_ms=None)

    def start_attempt(self) -> int:
        self.attempt += 1
        return self.attempt

    def exhausted(self) -> bool:
        return self.max_attempts is not None and self.attempt >= self.max_attempts

    def next_delay_ms(self) -> int:
        if self.current_delay_ms is None:
            self.current_delay_ms = self.min_delay_ms
        else:
            self.current_delay_ms = min(self.current_delay_ms * 2, self.max_delay_ms)
        return self.current_delay_ms


def attempt_log_level(attempt: int) -> int:
    """INFO for the first attempt, WARNING for attempts 2-4, ERROR after that."""

    if attempt <= 1:
        return logging.INFO
    if attempt < 5:
        return logging.WARNING
    return logging.ERROR


@dataclass(frozen=True, slots=True)
class BootstrapResult:
    attempts: int
    results: list[ReconcileResult] = field(default_factory=list)
    error: ConnectFailed | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def identifiers(self) -> dict[str, str]:
        return {result.name: result.identifier for result in self.results}


class ConnectionBootstrapper:
    def __init__(
        self,
        *,
        reconciler: WorkflowReconciler,
        workflows: Sequence[str],
        backoff: ExponentialBackoff | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._reconciler = reconciler
        self._workflows = list(workflows)
        self._backoff = backoff or ExponentialBackoff()
        self._sleep = sleep

    def run(self) -> BootstrapResult:
        """Sync every configured workflow, retrying whole passes on remote errors.

        Never raises for remote or definition failures: those end up in
        ``BootstrapResult.error`` as a :class:`ConnectFailed`.
        """

        backoff = self._backoff.fresh()
        delay_ms = 0

        while True:
            attempt = backoff.start_attempt()
            logger.log(
                attempt_log_level(attempt),
                "Syncing workflows",
                extra={"attempt": attempt, "delay_ms": delay_ms, "workflows": self._workflows},
            )

            try:
                results = self._sync_pass()
            except (ProtocolViolation, DefinitionError) as e:
                logger.error(
                    "Workflow sync failed and will not be retried",
                    extra={"attempt": attempt, "error": str(e)},
                )
                return BootstrapResult(attempts=attempt, error=ConnectFailed(e, attempt))
            except RemoteError as e:
                if backoff.exhausted():
                    logger.error(
                        "Workflow sync retry budget exhausted",
                        extra={"attempt": attempt, "error": str(e)},
                    )
                    return BootstrapResult(attempts=attempt, error=ConnectFailed(e, attempt))

                delay_ms = backoff.next_delay_ms()
                logger.log(
                    attempt_log_level(attempt),
                    "Workflow sync attempt failed",
                    extra={"attempt": attempt, "delay_ms": delay_ms, "error": str(e)},
                )
                self._sleep(delay_ms / 1000)
                continue

            logger.info(
                "Workflows synced",
                extra={
                    "attempt": attempt,
                    "actions": {result.name: result.action.value for result in results},
                },
            )
            return BootstrapResult(attempts=attempt, results=results)

    def _sync_pass(self) -> list[ReconcileResult]:
        return [self._reconciler.reconcile(name) for name in self._workflows]
