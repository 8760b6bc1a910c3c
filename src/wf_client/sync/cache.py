"""Workflow name -> remote identifier cache."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import MappingProxyType


class IdentifierCache:
    """Identifiers resolved by the reconciler, read by the job submitter.

    Writes are serialized on a lock and publish a fresh read-only mapping, so
    readers never block and never observe a half-applied update.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Mapping[str, str] = MappingProxyType({})

    def get(self, name: str) -> str | None:
        return self._entries.get(name)

    def set(self, name: str, identifier: str) -> None:
        if not identifier:
            raise ValueError("identifier must be non-empty")
        with self._lock:
            updated = dict(self._entries)
            updated[name] = identifier
            self._entries = MappingProxyType(updated)

    def snapshot(self) -> Mapping[str, str]:
        return self._entries

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
