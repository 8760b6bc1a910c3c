"""Load workflow definitions from a local directory.

A workflow named ``say`` is looked up as ``<path>/say.py`` and then
``<path>/say.json``:

- a Python module must expose a module-level ``workflow`` that is either a
  :class:`WorkflowDefinition` or a mapping accepted by it (step bodies may be
  plain functions);
- a JSON file holds the same mapping with text bodies.

Loaded definitions are cached for the lifetime of the loader, so a definition
never changes underneath a running client.
"""

from __future__ import annotations

import importlib.util
import json
import logging
import threading
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from wf_client.definitions.models import WorkflowDefinition
from wf_client.errors import DefinitionError

logger = logging.getLogger(__name__)


class DefinitionLoader(Protocol):
    def load(self, name: str) -> WorkflowDefinition: ...


class DirectoryDefinitionLoader:
    """Resolve workflow names to definitions stored under one directory."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._cache: dict[str, WorkflowDefinition] = {}
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self, name: str) -> WorkflowDefinition:
        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                return cached

            definition = self._load_uncached(name)
            self._cache[name] = definition
            logger.debug(
                "Workflow definition loaded",
                extra={"workflow": name, "display_name": definition.display_name},
            )
            return definition

    def _load_uncached(self, name: str) -> WorkflowDefinition:
        if not name.strip() or "/" in name or "\\" in name or name.startswith("."):
            raise DefinitionError(f"Invalid workflow name: {name!r}")

        module_path = self._path / f"{name}.py"
        json_path = self._path / f"{name}.json"
        if module_path.is_file():
            raw = _load_module_workflow(name, module_path)
        elif json_path.is_file():
            try:
                text = json_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise DefinitionError(f"Unable to read workflow definition {json_path}: {e}") from e
            try:
                raw = json.loads(text)
            except json.JSONDecodeError as e:
                raise DefinitionError(f"Workflow definition is not valid JSON: {json_path}") from e
        else:
            raise DefinitionError(f"No definition found for workflow {name!r} in {self._path}")

        if isinstance(raw, WorkflowDefinition):
            return raw
        try:
            return WorkflowDefinition.model_validate(raw)
        except ValidationError as e:
            raise DefinitionError(f"Invalid definition for workflow {name!r}: {e}") from e


def _load_module_workflow(name: str, path: Path) -> object:
    spec = importlib.util.spec_from_file_location(f"wf_client_definitions.{name}", path)
    if spec is None or spec.loader is None:
        raise DefinitionError(f"Unable to import workflow module: {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise DefinitionError(f"Failed to import workflow module {path}: {e}") from e

    if not hasattr(module, "workflow"):
        raise DefinitionError(f"Workflow module {path} does not define 'workflow'")
    return module.workflow
