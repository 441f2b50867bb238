"""Workflow REST API.

All routes are mounted under `/api`. Editing routes load the saved workflow,
apply one document operation and save it back.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request, Response

from button_workflow import __version__
from button_workflow.output import ExecutionOutputState
from button_workflow.server.config import ServerSettings
from button_workflow.server.host import HeadlessHost
from button_workflow.server.models import (
    ActionPatch,
    ApiAction,
    ApiControl,
    ApiWorkflow,
    LabelRequest,
    NewActionRequest,
    ReorderRequest,
    RunRequest,
    RunResponse,
)
from button_workflow.storage import KeyValueStore, WorkflowRepository
from button_workflow.workflow import document
from button_workflow.workflow.dispatcher import ExecutionContext, TriggerControl
from button_workflow.workflow.document import Action, MalformedWorkflowError, Workflow
from button_workflow.workflow.executor import SequentialExecutor
from button_workflow.workflow.schema import ACTION_LABELS, meaningful_fields, missing_required

logger = logging.getLogger(__name__)

router = APIRouter()


def _settings(request: Request) -> ServerSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, ServerSettings):
        raise HTTPException(status_code=500, detail="Server settings not configured")
    return settings


def _store(request: Request) -> KeyValueStore:
    return request.app.state.store


def _repo(request: Request) -> WorkflowRepository:
    return WorkflowRepository(_store(request))


def _api_action(action: Action) -> ApiAction:
    return ApiAction(
        id=action.id,
        type=action.kind,
        label=ACTION_LABELS[action.kind],
        config=action.params,
        inputs=list(meaningful_fields(action.kind)),
        missing=missing_required(action.kind, action.params),
    )


def _api_workflow(workflow: Workflow, *, configured: bool = True) -> ApiWorkflow:
    return ApiWorkflow(
        configured=configured,
        buttonLabel=workflow.trigger_label,
        displayLabel=document.display_label(workflow),
        actions=[_api_action(a) for a in workflow.actions],
    )


def _require_action(workflow: Workflow, action_id: str) -> Action:
    action = document.find(workflow, action_id)
    if action is None:
        raise HTTPException(status_code=404, detail="Action not found")
    return action


@router.get("/health")
def health() -> dict[str, object]:
    return {"status": "ok", "version": __version__}


@router.get("/workflow", response_model=ApiWorkflow)
def get_workflow(request: Request) -> ApiWorkflow:
    workflow = _repo(request).load()
    if workflow is None:
        return _api_workflow(Workflow(), configured=False)
    return _api_workflow(workflow)


@router.put("/workflow", response_model=ApiWorkflow)
def put_workflow(request: Request, record: dict[str, object]) -> ApiWorkflow:
    try:
        workflow = Workflow.from_json(record)
    except MalformedWorkflowError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    _repo(request).save(workflow)
    return _api_workflow(workflow)


@router.put("/workflow/label", response_model=ApiWorkflow)
def put_label(request: Request, req: LabelRequest) -> ApiWorkflow:
    repo = _repo(request)
    workflow = document.set_trigger_label(repo.load_or_empty(), req.buttonLabel)
    repo.save(workflow)
    return _api_workflow(workflow)


@router.post("/workflow/actions", response_model=ApiAction, status_code=201)
def add_action(request: Request, req: NewActionRequest) -> ApiAction:
    repo = _repo(request)
    workflow = document.append(repo.load_or_empty(), req.type)
    new_id = workflow.actions[-1].id
    if req.config is not None:
        workflow = document.update(workflow, new_id, params=req.config)
    repo.save(workflow)
    return _api_action(_require_action(workflow, new_id))


@router.patch("/workflow/actions/{action_id}", response_model=ApiAction)
def patch_action(request: Request, action_id: str, req: ActionPatch) -> ApiAction:
    repo = _repo(request)
    workflow = repo.load_or_empty()
    _require_action(workflow, action_id)
    workflow = document.update(workflow, action_id, kind=req.type, params=req.config)
    repo.save(workflow)
    return _api_action(_require_action(workflow, action_id))


@router.delete("/workflow/actions/{action_id}", status_code=204)
def delete_action(request: Request, action_id: str) -> Response:
    repo = _repo(request)
    workflow = repo.load_or_empty()
    _require_action(workflow, action_id)
    repo.save(document.remove(workflow, action_id))
    return Response(status_code=204)


@router.post("/workflow/reorder", response_model=ApiWorkflow)
def reorder_actions(request: Request, req: ReorderRequest) -> ApiWorkflow:
    repo = _repo(request)
    workflow = repo.load_or_empty()
    count = len(workflow.actions)
    if req.destination is None:
        return _api_workflow(workflow)
    if not (0 <= req.source < count and 0 <= req.destination < count):
        raise HTTPException(status_code=422, detail="Index out of range")
    workflow = document.reorder(workflow, req.source, req.destination)
    repo.save(workflow)
    return _api_workflow(workflow)


@router.get("/output")
def get_output(request: Request) -> dict[str, object]:
    return ExecutionOutputState.restore(_store(request)).snapshot().model_dump(mode="json")


@router.post("/run", response_model=RunResponse)
def run_workflow(request: Request, req: RunRequest) -> RunResponse:
    # Plain `def`: FastAPI runs this in its threadpool, so the store's blocking
    # file I/O and the pacing sleeps stay off the server's event loop.
    settings = _settings(request)
    store = _store(request)
    workflow = WorkflowRepository(store).load()
    if workflow is None:
        raise HTTPException(status_code=409, detail="No workflow configured")

    host = HeadlessHost(prompt_responses=req.promptResponses, opened_by_other=req.openedByOther)
    output = ExecutionOutputState.restore(store)
    control = TriggerControl(label=document.display_label(workflow))
    context = ExecutionContext(output=output, store=store, host=host, control=control)

    report = asyncio.run(
        SequentialExecutor(delay_seconds=settings.action_delay_seconds).run(workflow, context)
    )

    return RunResponse(
        steps=[s.to_json() for s in report.steps],
        terminated=report.terminated,
        notifications=host.notifications,
        prompts=host.prompts,
        reloaded=host.reloaded,
        closed=host.closed,
        control=ApiControl(
            label=control.label, style=control.style, disabled=output.control_disabled
        ),
        output=output.snapshot(),
    )


@router.delete("/storage", status_code=204)
def clear_storage(request: Request) -> Response:
    _store(request).clear()
    logger.warning("Storage cleared")
    return Response(status_code=204)
