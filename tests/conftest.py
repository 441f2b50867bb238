"""Test configuration and fixtures."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from button_workflow.output import ExecutionOutputState
from button_workflow.storage import MemoryStore
from button_workflow.workflow.dispatcher import ExecutionContext, TriggerControl


@dataclass
class FakeClock:
    now: float = 0.0
    sleeps: list[float] = field(default_factory=list)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@dataclass
class RecordingHost:
    """Host that records every effect with the fake clock time it happened at."""

    clock: FakeClock
    prompt_answers: list[str | None] = field(default_factory=list)
    opened_by_other: bool = False
    events: list[tuple[str, str, float]] = field(default_factory=list)

    async def notify(self, message: str) -> None:
        self.events.append(("notify", message, self.clock.now))

    async def prompt(self, message: str) -> str | None:
        self.events.append(("prompt", message, self.clock.now))
        return self.prompt_answers.pop(0) if self.prompt_answers else None

    def reload(self) -> None:
        self.events.append(("reload", "", self.clock.now))

    def has_opener(self) -> bool:
        return self.opened_by_other

    def close(self) -> None:
        self.events.append(("close", "", self.clock.now))


class RecordingOutput(ExecutionOutputState):
    """Output state that also logs each sink write with its time."""

    def __init__(self, clock: FakeClock, store: MemoryStore | None = None) -> None:
        super().__init__(store)
        self._clock = clock
        self.writes: list[tuple[str, str, float]] = []

    def set_text(self, text: str) -> None:
        super().set_text(text)
        self.writes.append(("text", text, self._clock.now))

    def set_image_url(self, url: str) -> None:
        super().set_image_url(url)
        self.writes.append(("image", url, self._clock.now))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def host(clock: FakeClock) -> RecordingHost:
    return RecordingHost(clock=clock)


@pytest.fixture
def output(clock: FakeClock, store: MemoryStore) -> RecordingOutput:
    return RecordingOutput(clock, store)


@pytest.fixture
def control() -> TriggerControl:
    return TriggerControl(label="Click Me")


@pytest.fixture
def context(
    output: RecordingOutput, store: MemoryStore, host: RecordingHost, control: TriggerControl
) -> ExecutionContext:
    return ExecutionContext(
        output=output, store=store, host=host, control=control, rng=random.Random(1234)
    )


@pytest.fixture
def storage_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point settings at a temporary storage file with no pacing delay."""

    path = tmp_path / "workflow_state" / "storage.json"
    monkeypatch.setenv("WORKFLOW_STORAGE_PATH", str(path))
    monkeypatch.setenv("WORKFLOW_ACTION_DELAY_MS", "0")
    monkeypatch.chdir(tmp_path)
    return path


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    """Undo `configure_logging` calls made by the code under test."""

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
