#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates using the workflow components directly:

* build a workflow with the pure document operations
* save it to a JSON-file store and load it back
* run it against a console host
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from button_workflow.console import ConsoleHost
from button_workflow.logging import configure_logging
from button_workflow.output import ExecutionOutputState
from button_workflow.storage import JsonFileStore, WorkflowRepository
from button_workflow.workflow import document
from button_workflow.workflow.dispatcher import ExecutionContext, TriggerControl
from button_workflow.workflow.executor import SequentialExecutor
from button_workflow.workflow.schema import ActionKind, ActionParams


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build and run a small button workflow.")
    parser.add_argument(
        "--storage", default="workflow_state/example.json", help="JSON file used as storage"
    )
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


def build() -> document.Workflow:
    wf = document.set_trigger_label(document.Workflow(), "Greet")
    wf = document.append(wf, ActionKind.SET_LOCAL_STORAGE)
    wf = document.update(wf, wf.ids[-1], params=ActionParams(key="greeting", value="hello"))
    wf = document.append(wf, ActionKind.GET_LOCAL_STORAGE)
    wf = document.update(wf, wf.ids[-1], params=ActionParams(key="greeting"))
    wf = document.append(wf, ActionKind.CHANGE_BUTTON_COLOR)
    return wf


async def _run(store: JsonFileStore) -> None:
    workflow = WorkflowRepository(store).load()
    if workflow is None:
        print("No workflow configured.")
        return

    output = ExecutionOutputState.restore(store)
    control = TriggerControl(label=document.display_label(workflow))
    context = ExecutionContext(
        output=output, store=store, host=ConsoleHost(wait_for_ack=False), control=control
    )
    report = await SequentialExecutor().run(workflow, context)

    print(f"Dispatched {len(report.steps)} action(s)")
    print(f"Text: {output.last_text}")
    print(f"Button style: {control.style}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_level)

    store = JsonFileStore(Path(args.storage))
    WorkflowRepository(store).save(build())
    asyncio.run(_run(store))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
