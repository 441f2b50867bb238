"""Durable key-value storage and the workflow record that lives in it.

The store has localStorage semantics: string keys, string values, `None` for a
missing key. Workflow actions read and write it directly, and the saved
workflow and the last visible output live under fixed keys in the same store.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from button_workflow.workflow.document import MalformedWorkflowError, Workflow

logger = logging.getLogger(__name__)

WORKFLOW_KEY = "Configuration"
OUTPUT_TEXT_KEY = "OutputText"
OUTPUT_IMAGE_KEY = "OutputImage"


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...


@dataclass
class MemoryStore:
    """In-process store; used by tests and the headless server host."""

    items: dict[str, str] = field(default_factory=dict)

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    def clear(self) -> None:
        self.items.clear()


@dataclass
class JsonFileStore:
    """A store persisted as one JSON object on disk.

    The file is re-read on every access so separate processes (CLI invocations,
    the server) observe each other's writes.
    """

    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load_unlocked(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Storage file is not valid JSON; ignoring", extra={"path": str(self.path)}
            )
            return {}
        if not isinstance(raw, dict):
            return {}
        return {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)}

    def _save_unlocked(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(items, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._load_unlocked().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._load_unlocked()
            items[key] = value
            self._save_unlocked(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._load_unlocked()
            if items.pop(key, None) is not None:
                self._save_unlocked(items)

    def clear(self) -> None:
        with self._lock:
            self._save_unlocked({})

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return self._load_unlocked()


class WorkflowRepository:
    """Save and load the workflow record under a fixed storage key."""

    def __init__(self, store: KeyValueStore, key: str = WORKFLOW_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> Workflow | None:
        """Return the saved workflow, or None when nothing usable is stored."""

        raw = self._store.get_item(self._key)
        if raw is None:
            return None
        try:
            return Workflow.from_json(json.loads(raw))
        except (json.JSONDecodeError, MalformedWorkflowError) as e:
            logger.warning("Ignoring malformed workflow record", extra={"error": str(e)})
            return None

    def load_or_empty(self) -> Workflow:
        return self.load() or Workflow()

    def save(self, workflow: Workflow) -> None:
        self._store.set_item(self._key, json.dumps(workflow.to_json(), ensure_ascii=False))
        logger.debug("Workflow saved", extra={"actions": len(workflow.actions)})
