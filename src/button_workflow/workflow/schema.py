"""Declarative schema for workflow action kinds.

Each kind declares which params fields it reads and which of those must be
present for the action to have an effect. Editing surfaces use this to decide
which inputs to show; the dispatcher reads params through the typed views.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ActionKind(str, Enum):
    ALERT = "alert"
    SHOW_TEXT = "showText"
    SHOW_IMAGE = "showImage"
    REFRESH_PAGE = "refreshPage"
    SET_LOCAL_STORAGE = "setLocalStorage"
    GET_LOCAL_STORAGE = "getLocalStorage"
    INCREASE_BUTTON_SIZE = "increaseButtonSize"
    CLOSE_WINDOW = "closeWindow"
    PROMPT_AND_SHOW = "promptAndShow"
    CHANGE_BUTTON_COLOR = "changeButtonColor"
    DISABLE_BUTTON = "disableButton"


PARAM_FIELDS: tuple[str, ...] = ("message", "text", "imageUrl", "key", "value", "color")


class ActionParams(BaseModel):
    """The loose params bag persisted with every action.

    Fields that the current kind does not read are kept as they are.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    message: str | None = None
    text: str | None = None
    imageUrl: str | None = None  # noqa: N815 (record field name)
    key: str | None = None
    value: str | None = None
    color: str | None = None

    def to_json(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


@dataclass(frozen=True, slots=True)
class ParamSpec:
    fields: tuple[str, ...] = ()
    required: tuple[str, ...] = ()


ACTION_SCHEMA: dict[ActionKind, ParamSpec] = {
    ActionKind.ALERT: ParamSpec(fields=("message",)),
    ActionKind.SHOW_TEXT: ParamSpec(fields=("message",)),
    ActionKind.SHOW_IMAGE: ParamSpec(fields=("imageUrl",)),
    ActionKind.REFRESH_PAGE: ParamSpec(),
    ActionKind.SET_LOCAL_STORAGE: ParamSpec(fields=("key", "value"), required=("key",)),
    ActionKind.GET_LOCAL_STORAGE: ParamSpec(fields=("key",), required=("key",)),
    ActionKind.INCREASE_BUTTON_SIZE: ParamSpec(),
    ActionKind.CLOSE_WINDOW: ParamSpec(),
    ActionKind.PROMPT_AND_SHOW: ParamSpec(fields=("message",)),
    ActionKind.CHANGE_BUTTON_COLOR: ParamSpec(fields=("color",)),
    ActionKind.DISABLE_BUTTON: ParamSpec(),
}

ACTION_LABELS: dict[ActionKind, str] = {
    ActionKind.ALERT: "Alert",
    ActionKind.SHOW_TEXT: "Show Text",
    ActionKind.SHOW_IMAGE: "Show Image",
    ActionKind.REFRESH_PAGE: "Refresh Page",
    ActionKind.SET_LOCAL_STORAGE: "Set LocalStorage",
    ActionKind.GET_LOCAL_STORAGE: "Get LocalStorage",
    ActionKind.INCREASE_BUTTON_SIZE: "Increase Button Size",
    ActionKind.CLOSE_WINDOW: "Close Window",
    ActionKind.PROMPT_AND_SHOW: "Prompt and Show",
    ActionKind.CHANGE_BUTTON_COLOR: "Change Button Color",
    ActionKind.DISABLE_BUTTON: "Disable Button",
}


def meaningful_fields(kind: ActionKind) -> tuple[str, ...]:
    return ACTION_SCHEMA[kind].fields


def required_fields(kind: ActionKind) -> tuple[str, ...]:
    return ACTION_SCHEMA[kind].required


def missing_required(kind: ActionKind, params: ActionParams | None) -> list[str]:
    """Return the required fields that are absent or empty for `kind`."""

    bag = params or ActionParams()
    return [name for name in required_fields(kind) if not getattr(bag, name)]


# Typed views: one variant per kind, carrying only the fields that kind reads.


@dataclass(frozen=True, slots=True)
class AlertParams:
    message: str | None = None


@dataclass(frozen=True, slots=True)
class ShowTextParams:
    message: str | None = None


@dataclass(frozen=True, slots=True)
class ShowImageParams:
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshPageParams:
    pass


@dataclass(frozen=True, slots=True)
class SetLocalStorageParams:
    key: str | None = None
    value: str | None = None


@dataclass(frozen=True, slots=True)
class GetLocalStorageParams:
    key: str | None = None


@dataclass(frozen=True, slots=True)
class IncreaseButtonSizeParams:
    pass


@dataclass(frozen=True, slots=True)
class CloseWindowParams:
    pass


@dataclass(frozen=True, slots=True)
class PromptAndShowParams:
    message: str | None = None


@dataclass(frozen=True, slots=True)
class ChangeButtonColorParams:
    color: str | None = None


@dataclass(frozen=True, slots=True)
class DisableButtonParams:
    pass


TypedParams = (
    AlertParams
    | ShowTextParams
    | ShowImageParams
    | RefreshPageParams
    | SetLocalStorageParams
    | GetLocalStorageParams
    | IncreaseButtonSizeParams
    | CloseWindowParams
    | PromptAndShowParams
    | ChangeButtonColorParams
    | DisableButtonParams
)


def typed_params(kind: ActionKind, params: ActionParams | None) -> TypedParams:
    """Project the loose params bag onto the variant for `kind`."""

    p = params or ActionParams()
    if kind is ActionKind.ALERT:
        return AlertParams(message=p.message)
    if kind is ActionKind.SHOW_TEXT:
        return ShowTextParams(message=p.message)
    if kind is ActionKind.SHOW_IMAGE:
        return ShowImageParams(image_url=p.imageUrl)
    if kind is ActionKind.REFRESH_PAGE:
        return RefreshPageParams()
    if kind is ActionKind.SET_LOCAL_STORAGE:
        return SetLocalStorageParams(key=p.key, value=p.value)
    if kind is ActionKind.GET_LOCAL_STORAGE:
        return GetLocalStorageParams(key=p.key)
    if kind is ActionKind.INCREASE_BUTTON_SIZE:
        return IncreaseButtonSizeParams()
    if kind is ActionKind.CLOSE_WINDOW:
        return CloseWindowParams()
    if kind is ActionKind.PROMPT_AND_SHOW:
        return PromptAndShowParams(message=p.message)
    if kind is ActionKind.CHANGE_BUTTON_COLOR:
        return ChangeButtonColorParams(color=p.color)
    if kind is ActionKind.DISABLE_BUTTON:
        return DisableButtonParams()
    raise ValueError(f"Unknown action kind: {kind!r}")
