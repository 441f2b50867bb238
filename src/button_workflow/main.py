"""CLI entrypoint: edit the saved workflow and trigger runs from a terminal."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from button_workflow import __version__
from button_workflow.config import WorkflowSettings
from button_workflow.console import ConsoleHost, render
from button_workflow.logging import configure_logging
from button_workflow.output import ExecutionOutputState
from button_workflow.storage import JsonFileStore, WorkflowRepository
from button_workflow.workflow import document
from button_workflow.workflow.dispatcher import ExecutionContext, TriggerControl
from button_workflow.workflow.document import ActionNotFoundError, Workflow
from button_workflow.workflow.executor import SequentialExecutor
from button_workflow.workflow.schema import (
    ACTION_LABELS,
    ActionKind,
    ActionParams,
    meaningful_fields,
    missing_required,
)

logger = logging.getLogger(__name__)

NO_WORKFLOW_MESSAGE = "No workflow configured yet. Please configure the workflow first."

_KIND_CHOICES = [k.value for k in ActionKind]

# CLI flag -> params field
_PARAM_FLAGS: dict[str, str] = {
    "message": "message",
    "text": "text",
    "image_url": "imageUrl",
    "key": "key",
    "value": "value",
    "color": "color",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="button-workflow",
        description="Configure a button workflow and run it",
    )
    parser.add_argument("--version", action="version", version=f"button-workflow {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show", help="Show the saved workflow")

    add = subparsers.add_parser("add", help="Append an action")
    add.add_argument("--type", dest="kind", choices=_KIND_CHOICES, default=ActionKind.ALERT.value)
    _add_param_flags(add)

    remove = subparsers.add_parser("remove", help="Remove an action by id")
    remove.add_argument("action_id")

    update = subparsers.add_parser(
        "update",
        help="Change an action's type and/or params (given params replace all existing ones)",
    )
    update.add_argument("action_id")
    update.add_argument("--type", dest="kind", choices=_KIND_CHOICES, default=None)
    _add_param_flags(update)

    move = subparsers.add_parser("move", help="Move an action from one position to another")
    move.add_argument("from_index", type=int)
    move.add_argument("to_index", type=int)

    label = subparsers.add_parser("label", help="Set the trigger button label")
    label.add_argument("text")

    run = subparsers.add_parser("run", help="Press the trigger button")
    run.add_argument(
        "--opened-by-other",
        action="store_true",
        help="Behave as a window opened by another window (closeWindow closes it)",
    )
    run.add_argument(
        "--no-wait",
        action="store_true",
        help="Do not wait for Enter after each alert",
    )

    subparsers.add_parser("output", help="Show the output persisted by the last run")
    subparsers.add_parser("clear", help="Clear all storage, including the saved workflow")

    serve = subparsers.add_parser("serve", help="Serve the REST API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def _add_param_flags(parser: argparse.ArgumentParser) -> None:
    for flag in _PARAM_FLAGS:
        parser.add_argument(f"--{flag.replace('_', '-')}", dest=flag, default=None)


def _params_from_args(args: argparse.Namespace) -> ActionParams | None:
    given = {
        field: getattr(args, flag)
        for flag, field in _PARAM_FLAGS.items()
        if getattr(args, flag) is not None
    }
    if not given:
        return None
    return ActionParams.model_validate(given)


def _describe(workflow: Workflow) -> list[str]:
    lines = [f"Button: {document.display_label(workflow)}"]
    if not workflow.actions:
        lines.append("  (no actions)")
    for index, action in enumerate(workflow.actions):
        shown = {
            name: getattr(action.params, name)
            for name in meaningful_fields(action.kind)
            if getattr(action.params, name) is not None
        }
        params = ", ".join(f"{k}={v!r}" for k, v in shown.items())
        line = f"  {index}. {ACTION_LABELS[action.kind]} [{action.id}]"
        if params:
            line += f" {params}"
        missing = missing_required(action.kind, action.params)
        if missing:
            line += f" (missing: {', '.join(missing)}; will be skipped)"
        lines.append(line)
    return lines


async def _run_workflow(
    workflow: Workflow, settings: WorkflowSettings, store: JsonFileStore, args: argparse.Namespace
) -> None:
    host = ConsoleHost(opened_by_other=args.opened_by_other, wait_for_ack=not args.no_wait)
    output = ExecutionOutputState.restore(store)
    control = TriggerControl(label=document.display_label(workflow))
    context = ExecutionContext(output=output, store=store, host=host, control=control)

    executor = SequentialExecutor(delay_seconds=settings.action_delay_seconds)
    await executor.run(workflow, context)

    if host.reloaded:
        # A reload drops transient state; only what was persisted survives.
        output = ExecutionOutputState.restore(store)
        control = TriggerControl(label=document.display_label(workflow))
    render(control, output, sys.stdout)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkflowSettings()
    except ValidationError as e:
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    store = JsonFileStore(settings.storage_path)
    repo = WorkflowRepository(store)

    try:
        if args.command == "show":
            workflow = repo.load()
            if workflow is None:
                print(NO_WORKFLOW_MESSAGE)
                return 0
            print("\n".join(_describe(workflow)))
            return 0

        if args.command == "add":
            workflow = document.append(repo.load_or_empty(), ActionKind(args.kind))
            params = _params_from_args(args)
            new_id = workflow.actions[-1].id
            if params is not None:
                workflow = document.update(workflow, new_id, params=params)
            repo.save(workflow)
            print(new_id)
            return 0

        if args.command == "remove":
            workflow = repo.load_or_empty()
            document.require(workflow, args.action_id)
            repo.save(document.remove(workflow, args.action_id))
            return 0

        if args.command == "update":
            workflow = repo.load_or_empty()
            document.require(workflow, args.action_id)
            kind = ActionKind(args.kind) if args.kind is not None else None
            workflow = document.update(
                workflow, args.action_id, kind=kind, params=_params_from_args(args)
            )
            repo.save(workflow)
            return 0

        if args.command == "move":
            workflow = repo.load_or_empty()
            count = len(workflow.actions)
            if not (0 <= args.from_index < count and 0 <= args.to_index < count):
                print(f"Index out of range (0..{count - 1})", file=sys.stderr)
                return 2
            repo.save(document.reorder(workflow, args.from_index, args.to_index))
            return 0

        if args.command == "label":
            repo.save(document.set_trigger_label(repo.load_or_empty(), args.text))
            return 0

        if args.command == "run":
            workflow = repo.load()
            if workflow is None:
                print(NO_WORKFLOW_MESSAGE)
                return 1
            asyncio.run(_run_workflow(workflow, settings, store, args))
            return 0

        if args.command == "output":
            output = ExecutionOutputState.restore(store)
            print(output.snapshot().model_dump_json(indent=2))
            return 0

        if args.command == "serve":
            import uvicorn

            from button_workflow.server import create_app

            uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)
            return 0

        if args.command == "clear":
            store.clear()
            logger.warning("Storage cleared", extra={"path": str(settings.storage_path)})
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except ActionNotFoundError as e:
        print(f"No action with id {e.args[0]!r}", file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
