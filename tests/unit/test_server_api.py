from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from button_workflow.server.app import create_app
from button_workflow.server.config import ServerSettings
from button_workflow.storage import OUTPUT_TEXT_KEY, WORKFLOW_KEY, MemoryStore


@pytest.fixture
def api_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, api_store: MemoryStore) -> TestClient:
    monkeypatch.setenv("WORKFLOW_ACTION_DELAY_MS", "0")
    return TestClient(create_app(ServerSettings(), store=api_store))


def _add(client: TestClient, type_: str, **config: str) -> str:
    body: dict[str, object] = {"type": type_}
    if config:
        body["config"] = config
    resp = client.post("/api/workflow/actions", json=body)
    assert resp.status_code == 201
    return resp.json()["id"]


def test_health(client: TestClient) -> None:
    health = client.get("/api/health").json()
    assert health["status"] == "ok"
    assert "version" in health


def test_unconfigured_workflow(client: TestClient) -> None:
    body = client.get("/api/workflow").json()
    assert body["configured"] is False
    assert body["displayLabel"] == "Click Me"
    assert body["actions"] == []


def test_edit_workflow(client: TestClient, api_store: MemoryStore) -> None:
    first = _add(client, "alert")
    second = _add(client, "showImage", imageUrl="http://img")

    resp = client.put("/api/workflow/label", json={"buttonLabel": "Go"})
    assert resp.json()["displayLabel"] == "Go"

    resp = client.patch(f"/api/workflow/actions/{first}", json={"config": {"message": "hi"}})
    assert resp.status_code == 200
    assert resp.json()["config"]["message"] == "hi"
    assert resp.json()["inputs"] == ["message"]

    resp = client.post("/api/workflow/reorder", json={"source": 1, "destination": 0})
    assert [a["id"] for a in resp.json()["actions"]] == [second, first]

    saved = json.loads(api_store.items[WORKFLOW_KEY])
    assert saved["buttonLabel"] == "Go"
    assert [a["type"] for a in saved["actions"]] == ["showImage", "alert"]
    assert saved["actions"][0]["config"] == {"imageUrl": "http://img"}

    assert client.delete(f"/api/workflow/actions/{second}").status_code == 204
    assert [a["id"] for a in client.get("/api/workflow").json()["actions"]] == [first]


def test_new_action_reports_missing_required_fields(client: TestClient) -> None:
    resp = client.post("/api/workflow/actions", json={"type": "setLocalStorage"})
    body = resp.json()
    assert body["label"] == "Set LocalStorage"
    assert body["inputs"] == ["key", "value"]
    assert body["missing"] == ["key"]


def test_reorder_dropped_outside_is_noop(client: TestClient) -> None:
    a = _add(client, "alert")
    b = _add(client, "alert")
    resp = client.post("/api/workflow/reorder", json={"source": 0, "destination": None})
    assert [x["id"] for x in resp.json()["actions"]] == [a, b]


def test_reorder_out_of_range(client: TestClient) -> None:
    _add(client, "alert")
    resp = client.post("/api/workflow/reorder", json={"source": 0, "destination": 3})
    assert resp.status_code == 422


def test_unknown_action_is_404(client: TestClient) -> None:
    _add(client, "alert")
    assert client.patch("/api/workflow/actions/nope", json={}).status_code == 404
    assert client.delete("/api/workflow/actions/nope").status_code == 404


def test_put_workflow_validates_record(client: TestClient) -> None:
    record = {
        "buttonLabel": "Go",
        "actions": [{"id": "id_1", "type": "showText", "config": {"message": "hey"}}],
    }
    resp = client.put("/api/workflow", json=record)
    assert resp.status_code == 200
    assert resp.json()["actions"][0]["config"]["message"] == "hey"

    bad = {"actions": [{"id": "id_1", "type": "launchRocket"}]}
    assert client.put("/api/workflow", json=bad).status_code == 422


def test_run_without_workflow_is_409(client: TestClient) -> None:
    assert client.post("/api/run", json={}).status_code == 409


def test_run_reports_effects(client: TestClient, api_store: MemoryStore) -> None:
    client.put("/api/workflow/label", json={"buttonLabel": "Go"})
    _add(client, "alert", message="hello")
    _add(client, "promptAndShow", message="Name?")
    _add(client, "changeButtonColor", color="red")
    _add(client, "increaseButtonSize")
    _add(client, "disableButton")

    resp = client.post("/api/run", json={"promptResponses": ["Ada"]})
    assert resp.status_code == 200
    body = resp.json()

    assert body["notifications"] == ["hello"]
    assert body["prompts"] == ["Name?"]
    assert body["terminated"] is False
    assert [s["outcome"] for s in body["steps"]] == ["completed"] * 5
    assert body["control"] == {
        "label": "Go",
        "style": {"backgroundColor": "red", "transform": "scale(1.2)"},
        "disabled": True,
    }
    assert body["output"]["last_text"] == "Response: Ada"
    assert body["output"]["last_prompt_response"] == "Ada"
    assert api_store.get_item(OUTPUT_TEXT_KEY) == "Response: Ada"

    output = client.get("/api/output").json()
    assert output["last_text"] == "Response: Ada"
    assert output["control_disabled"] is False


def test_run_cancelled_prompt_and_default_alert(client: TestClient) -> None:
    _add(client, "alert")
    _add(client, "promptAndShow")

    body = client.post("/api/run", json={}).json()
    assert body["notifications"] == ["Alert!"]
    assert body["prompts"] == ["Enter your input:"]
    assert body["output"]["last_text"] == ""


def test_run_close_window(client: TestClient) -> None:
    _add(client, "closeWindow")

    body = client.post("/api/run", json={"openedByOther": True}).json()
    assert body["closed"] is True
    assert body["notifications"] == []

    body = client.post("/api/run", json={}).json()
    assert body["closed"] is False
    assert body["notifications"] == ["Please close it manually."]


def test_run_stops_at_refresh(client: TestClient) -> None:
    _add(client, "showText", message="a")
    _add(client, "refreshPage")
    _add(client, "showText", message="c")

    body = client.post("/api/run", json={}).json()
    assert body["terminated"] is True
    assert body["reloaded"] is True
    assert len(body["steps"]) == 2
    assert body["output"]["last_text"] == "a"


def test_clear_storage(client: TestClient, api_store: MemoryStore) -> None:
    _add(client, "alert")
    assert client.delete("/api/storage").status_code == 204
    assert api_store.items == {}
    assert client.get("/api/workflow").json()["configured"] is False


def test_default_store_is_json_file(storage_file: Path) -> None:
    client = TestClient(create_app())
    _add(client, "alert")
    assert WORKFLOW_KEY in json.loads(storage_file.read_text(encoding="utf-8"))


class _ThreadRecordingStore(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.write_threads: set[int] = set()

    def set_item(self, key: str, value: str) -> None:
        self.write_threads.add(threading.get_ident())
        super().set_item(key, value)


def test_run_writes_happen_off_the_event_loop(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORKFLOW_ACTION_DELAY_MS", "0")
    store = _ThreadRecordingStore()
    app = create_app(ServerSettings(), store=store)

    @app.get("/loop-thread")
    async def loop_thread() -> dict[str, int]:
        return {"ident": threading.get_ident()}

    client = TestClient(app)
    _add(client, "setLocalStorage", key="k", value="v")
    _add(client, "showText", message="hi")
    store.write_threads.clear()

    assert client.post("/api/run", json={}).status_code == 200
    loop_ident = client.get("/loop-thread").json()["ident"]

    assert store.get_item("k") == "v"
    assert store.write_threads
    assert loop_ident not in store.write_threads


def test_run_reports_failed_action_and_continues(monkeypatch: pytest.MonkeyPatch) -> None:
    class ReadOnlyStore(MemoryStore):
        def set_item(self, key: str, value: str) -> None:
            if key == "k":
                raise OSError("read-only")
            super().set_item(key, value)

    monkeypatch.setenv("WORKFLOW_ACTION_DELAY_MS", "0")
    client = TestClient(create_app(ServerSettings(), store=ReadOnlyStore()))
    _add(client, "setLocalStorage", key="k", value="v")
    _add(client, "alert", message="after")

    body = client.post("/api/run", json={}).json()
    assert [s["outcome"] for s in body["steps"]] == ["failed", "completed"]
    assert body["notifications"] == ["after"]
