"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, Field

from button_workflow.output import OutputSnapshot
from button_workflow.workflow.schema import ActionKind, ActionParams


class ApiAction(BaseModel):
    id: str
    type: ActionKind
    label: str
    config: ActionParams = Field(default_factory=ActionParams)
    inputs: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)


class ApiWorkflow(BaseModel):
    configured: bool
    buttonLabel: str  # noqa: N815
    displayLabel: str  # noqa: N815
    actions: list[ApiAction] = Field(default_factory=list)


class NewActionRequest(BaseModel):
    type: ActionKind = ActionKind.ALERT
    config: ActionParams | None = None


class ActionPatch(BaseModel):
    type: ActionKind | None = None
    config: ActionParams | None = None


class ReorderRequest(BaseModel):
    source: int
    # None mirrors a drag that was dropped outside the list.
    destination: int | None = None


class LabelRequest(BaseModel):
    buttonLabel: str  # noqa: N815


class RunRequest(BaseModel):
    # Answers consumed in order by promptAndShow actions; null means "cancelled".
    promptResponses: list[str | None] = Field(default_factory=list)  # noqa: N815
    openedByOther: bool = False  # noqa: N815


class ApiControl(BaseModel):
    label: str
    style: dict[str, str] = Field(default_factory=dict)
    disabled: bool = False


class RunResponse(BaseModel):
    steps: list[dict[str, object]] = Field(default_factory=list)
    terminated: bool = False
    notifications: list[str] = Field(default_factory=list)
    prompts: list[str] = Field(default_factory=list)
    reloaded: bool = False
    closed: bool = False
    control: ApiControl
    output: OutputSnapshot
