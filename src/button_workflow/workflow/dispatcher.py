"""Action dispatch: one action in, one side effect out.

`dispatch` is a function of (action, context) only. Everything an effect may
touch (output sinks, durable storage, the trigger control, the host surface)
is passed in through `ExecutionContext`.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from button_workflow.output import OutputSinks
from button_workflow.storage import KeyValueStore

from .document import Action
from .schema import (
    ActionKind,
    AlertParams,
    ChangeButtonColorParams,
    GetLocalStorageParams,
    PromptAndShowParams,
    SetLocalStorageParams,
    ShowImageParams,
    ShowTextParams,
    typed_params,
)

logger = logging.getLogger(__name__)

ALERT_FALLBACK = "Alert!"
PROMPT_FALLBACK = "Enter your input:"
CLOSE_MANUALLY_MESSAGE = "Please close it manually."
INCREASED_SCALE = "scale(1.2)"
MISSING_VALUE = "null"


class DispatchOutcome(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    TERMINATED = "terminated"
    # Set by the executor when a handler raised; `dispatch` never returns it.
    FAILED = "failed"


class Host(Protocol):
    """The surface hosting the trigger control.

    `notify` and `prompt` block the run until the user answers; a `None`
    prompt answer means the user cancelled.
    """

    async def notify(self, message: str) -> None: ...

    async def prompt(self, message: str) -> str | None: ...

    def reload(self) -> None: ...

    def has_opener(self) -> bool: ...

    def close(self) -> None: ...


@dataclass
class TriggerControl:
    """Live handle to the control that starts a run."""

    label: str = ""
    style: dict[str, str] = field(default_factory=dict)


@dataclass
class ExecutionContext:
    output: OutputSinks
    store: KeyValueStore
    host: Host
    control: TriggerControl | None = None
    rng: random.Random = field(default_factory=random.Random)


Handler = Callable[[Any, ExecutionContext], Awaitable[DispatchOutcome]]


async def _alert(params: AlertParams, ctx: ExecutionContext) -> DispatchOutcome:
    await ctx.host.notify(params.message or ALERT_FALLBACK)
    return DispatchOutcome.COMPLETED


async def _show_text(params: ShowTextParams, ctx: ExecutionContext) -> DispatchOutcome:
    ctx.output.set_text(params.message or "")
    return DispatchOutcome.COMPLETED


async def _show_image(params: ShowImageParams, ctx: ExecutionContext) -> DispatchOutcome:
    ctx.output.set_image_url(params.image_url or "")
    return DispatchOutcome.COMPLETED


async def _refresh_page(_params: object, ctx: ExecutionContext) -> DispatchOutcome:
    ctx.host.reload()
    return DispatchOutcome.TERMINATED


async def _set_local_storage(
    params: SetLocalStorageParams, ctx: ExecutionContext
) -> DispatchOutcome:
    if not params.key:
        return DispatchOutcome.SKIPPED
    ctx.store.set_item(params.key, params.value or "")
    return DispatchOutcome.COMPLETED


async def _get_local_storage(
    params: GetLocalStorageParams, ctx: ExecutionContext
) -> DispatchOutcome:
    if not params.key:
        return DispatchOutcome.SKIPPED
    value = ctx.store.get_item(params.key)
    ctx.output.set_text(f"{params.key}: {value if value is not None else MISSING_VALUE}")
    return DispatchOutcome.COMPLETED


async def _increase_button_size(_params: object, ctx: ExecutionContext) -> DispatchOutcome:
    if ctx.control is None:
        return DispatchOutcome.SKIPPED
    ctx.control.style["transform"] = INCREASED_SCALE
    return DispatchOutcome.COMPLETED


async def _close_window(_params: object, ctx: ExecutionContext) -> DispatchOutcome:
    if ctx.host.has_opener():
        ctx.host.close()
    else:
        await ctx.host.notify(CLOSE_MANUALLY_MESSAGE)
    return DispatchOutcome.COMPLETED


async def _prompt_and_show(params: PromptAndShowParams, ctx: ExecutionContext) -> DispatchOutcome:
    response = await ctx.host.prompt(params.message or PROMPT_FALLBACK)
    if not response:
        return DispatchOutcome.COMPLETED
    ctx.output.set_text(f"Response: {response}")
    ctx.output.set_prompt_response(response)
    return DispatchOutcome.COMPLETED


def random_color(rng: random.Random) -> str:
    return f"#{rng.randrange(0x1000000):06x}"


async def _change_button_color(
    params: ChangeButtonColorParams, ctx: ExecutionContext
) -> DispatchOutcome:
    if ctx.control is None:
        return DispatchOutcome.SKIPPED
    ctx.control.style["backgroundColor"] = params.color or random_color(ctx.rng)
    return DispatchOutcome.COMPLETED


async def _disable_button(_params: object, ctx: ExecutionContext) -> DispatchOutcome:
    ctx.output.disable_control()
    return DispatchOutcome.COMPLETED


HANDLERS: dict[ActionKind, Handler] = {
    ActionKind.ALERT: _alert,
    ActionKind.SHOW_TEXT: _show_text,
    ActionKind.SHOW_IMAGE: _show_image,
    ActionKind.REFRESH_PAGE: _refresh_page,
    ActionKind.SET_LOCAL_STORAGE: _set_local_storage,
    ActionKind.GET_LOCAL_STORAGE: _get_local_storage,
    ActionKind.INCREASE_BUTTON_SIZE: _increase_button_size,
    ActionKind.CLOSE_WINDOW: _close_window,
    ActionKind.PROMPT_AND_SHOW: _prompt_and_show,
    ActionKind.CHANGE_BUTTON_COLOR: _change_button_color,
    ActionKind.DISABLE_BUTTON: _disable_button,
}


async def dispatch(action: Action, context: ExecutionContext) -> DispatchOutcome:
    """Perform exactly one action's effect."""

    handler = HANDLERS[action.kind]
    outcome = await handler(typed_params(action.kind, action.params), context)
    if outcome is DispatchOutcome.SKIPPED:
        logger.debug(
            "Action skipped", extra={"action_id": action.id, "kind": action.kind.value}
        )
    return outcome
