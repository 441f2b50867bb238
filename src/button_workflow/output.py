"""Execution output state: the sinks actions write into.

The rendering surface reads these fields. Text and image are written back to
durable storage on every change so a reload restores what was visible.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel

from button_workflow.storage import OUTPUT_IMAGE_KEY, OUTPUT_TEXT_KEY, KeyValueStore


class OutputSinks(Protocol):
    def set_text(self, text: str) -> None: ...

    def set_prompt_response(self, response: str) -> None: ...

    def set_image_url(self, url: str) -> None: ...

    def disable_control(self) -> None: ...


class OutputSnapshot(BaseModel):
    last_text: str = ""
    last_prompt_response: str = ""
    last_image_url: str = ""
    control_disabled: bool = False


class ExecutionOutputState:
    """Process-wide output slots, optionally backed by a store."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store
        self.last_text = ""
        self.last_prompt_response = ""
        self.last_image_url = ""
        self.control_disabled = False

    @classmethod
    def restore(cls, store: KeyValueStore) -> ExecutionOutputState:
        """Rebuild the visible output from the values persisted by a previous run."""

        state = cls(store)
        state.last_text = store.get_item(OUTPUT_TEXT_KEY) or ""
        state.last_image_url = store.get_item(OUTPUT_IMAGE_KEY) or ""
        return state

    def set_text(self, text: str) -> None:
        self.last_text = text
        if self._store is not None:
            self._store.set_item(OUTPUT_TEXT_KEY, text)

    def set_prompt_response(self, response: str) -> None:
        self.last_prompt_response = response

    def set_image_url(self, url: str) -> None:
        self.last_image_url = url
        if self._store is not None:
            self._store.set_item(OUTPUT_IMAGE_KEY, url)

    def disable_control(self) -> None:
        # Nothing re-enables the control within a run.
        self.control_disabled = True

    def snapshot(self) -> OutputSnapshot:
        return OutputSnapshot(
            last_text=self.last_text,
            last_prompt_response=self.last_prompt_response,
            last_image_url=self.last_image_url,
            control_disabled=self.control_disabled,
        )
