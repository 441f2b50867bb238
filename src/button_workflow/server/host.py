"""Headless host used by the REST run endpoint.

There is no user at the other end of an HTTP request, so notifications are
collected for the response and prompt answers are supplied up front.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable


class HeadlessHost:
    def __init__(
        self, *, prompt_responses: Iterable[str | None] = (), opened_by_other: bool = False
    ) -> None:
        self._responses: deque[str | None] = deque(prompt_responses)
        self._opened_by_other = opened_by_other
        self.notifications: list[str] = []
        self.prompts: list[str] = []
        self.reloaded = False
        self.closed = False

    async def notify(self, message: str) -> None:
        self.notifications.append(message)

    async def prompt(self, message: str) -> str | None:
        self.prompts.append(message)
        if not self._responses:
            # Out of answers: same as the user cancelling.
            return None
        return self._responses.popleft()

    def reload(self) -> None:
        self.reloaded = True

    def has_opener(self) -> bool:
        return self._opened_by_other

    def close(self) -> None:
        self.closed = True
