"""Terminal host for workflow runs.

Notifications are printed and wait for Enter; prompts read one line. Reads run
in a worker thread so the event loop stays free while the user types.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from typing import TextIO

from button_workflow.output import ExecutionOutputState
from button_workflow.workflow.dispatcher import TriggerControl


class ConsoleHost:
    def __init__(
        self,
        *,
        input_fn: Callable[[str], str] | None = None,
        out: TextIO | None = None,
        opened_by_other: bool = False,
        wait_for_ack: bool = True,
    ) -> None:
        self._input = input_fn or input
        self._out = out or sys.stdout
        self._opened_by_other = opened_by_other
        self._wait_for_ack = wait_for_ack
        self.reloaded = False
        self.closed = False

    def _print(self, line: str) -> None:
        print(line, file=self._out, flush=True)

    async def _read(self, prompt: str) -> str | None:
        try:
            return await asyncio.to_thread(self._input, prompt)
        except EOFError:
            return None

    async def notify(self, message: str) -> None:
        self._print(f"[alert] {message}")
        if self._wait_for_ack:
            await self._read("(press Enter to continue) ")

    async def prompt(self, message: str) -> str | None:
        return await self._read(f"[prompt] {message} ")

    def reload(self) -> None:
        self.reloaded = True
        self._print("[reload] page reloaded")

    def has_opener(self) -> bool:
        return self._opened_by_other

    def close(self) -> None:
        self.closed = True
        self._print("[close] window closed")


def render(control: TriggerControl, output: ExecutionOutputState, out: TextIO) -> None:
    """Print the trigger control and the visible output."""

    state = " (disabled)" if output.control_disabled else ""
    print(f"[{control.label}]{state}", file=out)
    for prop, value in sorted(control.style.items()):
        print(f"  {prop}: {value}", file=out)
    if output.last_text:
        print(output.last_text, file=out)
    if output.last_image_url:
        print(f"image: {output.last_image_url}", file=out)
