"""The workflow document: an ordered list of actions plus a trigger label.

Every operation here is a pure function returning a new `Workflow`; nothing is
mutated in place. Identity is the action `id`, never its position.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from pydantic import ValidationError

from .schema import ActionKind, ActionParams

DEFAULT_TRIGGER_LABEL = "Click Me"


class MalformedWorkflowError(ValueError):
    pass


class ActionNotFoundError(KeyError):
    pass


def new_action_id() -> str:
    return f"id_{uuid.uuid4().hex}"


@dataclass(frozen=True, slots=True)
class Action:
    id: str
    kind: ActionKind
    params: ActionParams = field(default_factory=ActionParams)

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {"id": self.id, "type": self.kind.value}
        config = self.params.to_json()
        if config:
            out["config"] = config
        return out

    @staticmethod
    def from_json(obj: object) -> Action:
        if not isinstance(obj, dict):
            raise MalformedWorkflowError("Action entry must be an object")
        action_id = obj.get("id")
        if not isinstance(action_id, str) or not action_id:
            raise MalformedWorkflowError("Action entry is missing a string id")
        try:
            kind = ActionKind(obj.get("type"))
        except ValueError as e:
            raise MalformedWorkflowError(f"Unknown action type: {obj.get('type')!r}") from e

        config = obj.get("config")
        if config is None:
            params = ActionParams()
        elif isinstance(config, dict):
            try:
                params = ActionParams.model_validate(config)
            except ValidationError as e:
                raise MalformedWorkflowError(f"Invalid config for action {action_id}") from e
        else:
            raise MalformedWorkflowError(f"Invalid config for action {action_id}")
        return Action(id=action_id, kind=kind, params=params)


@dataclass(frozen=True, slots=True)
class Workflow:
    trigger_label: str = ""
    actions: tuple[Action, ...] = ()

    @property
    def ids(self) -> list[str]:
        return [a.id for a in self.actions]

    def to_json(self) -> dict[str, object]:
        return {
            "buttonLabel": self.trigger_label,
            "actions": [a.to_json() for a in self.actions],
        }

    @staticmethod
    def from_json(obj: object) -> Workflow:
        if not isinstance(obj, dict):
            raise MalformedWorkflowError("Workflow record must be an object")

        label_raw = obj.get("buttonLabel", "")
        if label_raw is None:
            label_raw = ""
        if not isinstance(label_raw, str):
            raise MalformedWorkflowError("buttonLabel must be a string")

        actions_raw = obj.get("actions", [])
        if not isinstance(actions_raw, list):
            raise MalformedWorkflowError("actions must be a list")

        actions = tuple(Action.from_json(item) for item in actions_raw)
        seen: set[str] = set()
        for a in actions:
            if a.id in seen:
                raise MalformedWorkflowError(f"Duplicate action id: {a.id}")
            seen.add(a.id)
        return Workflow(trigger_label=label_raw, actions=actions)


def to_record(workflow: Workflow) -> dict[str, object]:
    return workflow.to_json()


def from_record(obj: object) -> Workflow:
    return Workflow.from_json(obj)


def display_label(workflow: Workflow) -> str:
    """Label to render on the trigger control; the empty label is not stored."""

    return workflow.trigger_label or DEFAULT_TRIGGER_LABEL


def find(workflow: Workflow, action_id: str) -> Action | None:
    for action in workflow.actions:
        if action.id == action_id:
            return action
    return None


def require(workflow: Workflow, action_id: str) -> Action:
    """Like `find`, but raise `ActionNotFoundError` for unknown ids."""

    action = find(workflow, action_id)
    if action is None:
        raise ActionNotFoundError(action_id)
    return action


def append(
    workflow: Workflow,
    kind: ActionKind = ActionKind.ALERT,
    *,
    id_factory: Callable[[], str] = new_action_id,
) -> Workflow:
    existing = set(workflow.ids)
    action_id = id_factory()
    while action_id in existing:
        action_id = id_factory()
    action = Action(id=action_id, kind=kind, params=ActionParams())
    return replace(workflow, actions=(*workflow.actions, action))


def remove(workflow: Workflow, action_id: str) -> Workflow:
    if find(workflow, action_id) is None:
        return workflow
    return replace(workflow, actions=tuple(a for a in workflow.actions if a.id != action_id))


def update(
    workflow: Workflow,
    action_id: str,
    *,
    kind: ActionKind | None = None,
    params: ActionParams | None = None,
) -> Workflow:
    """Merge the supplied fields into the action with `action_id`.

    A supplied `params` replaces the whole bag. Changing only `kind` keeps the
    existing params, including fields the new kind does not read.
    """

    if find(workflow, action_id) is None:
        return workflow

    def _apply(action: Action) -> Action:
        if action.id != action_id:
            return action
        changes: dict[str, object] = {}
        if kind is not None:
            changes["kind"] = kind
        if params is not None:
            changes["params"] = params
        return replace(action, **changes)

    return replace(workflow, actions=tuple(_apply(a) for a in workflow.actions))


def reorder(workflow: Workflow, from_index: int, to_index: int | None) -> Workflow:
    """Move the action at `from_index` to `to_index` (pop, then insert).

    A missing destination, as from a cancelled drag, leaves the workflow as is.
    Bounds are the caller's responsibility.
    """

    if to_index is None:
        return workflow
    items = list(workflow.actions)
    moved = items.pop(from_index)
    items.insert(to_index, moved)
    return replace(workflow, actions=tuple(items))


def set_trigger_label(workflow: Workflow, label: str) -> Workflow:
    return replace(workflow, trigger_label=label)

