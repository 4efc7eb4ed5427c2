"""Test FastAPI endpoints (unit-level, no real LLM calls)."""

import asyncio
import random

import pytest
from fastapi.testclient import TestClient

from datapilot import server
from datapilot.broadcast import BroadcastEngine
from datapilot.pipeline import Pipeline
from datapilot.telemetry import TelemetrySimulator
from fakes import FakeGateway


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    gateway = FakeGateway(steps=["Load data", "Plot trend"])
    monkeypatch.setattr(server, "pipeline", Pipeline(gateway=gateway, step_delay=0))
    monkeypatch.setattr(
        server, "broadcaster", BroadcastEngine(simulator=TelemetrySimulator(rng=random.Random(5)))
    )
    yield gateway


client = TestClient(server.app)


def test_current_run_idle():
    resp = client.get("/runs/current")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "idle"
    assert data["plan"] == []
    assert data["artifacts"] == []


def test_start_run(fresh_state):
    resp = client.post("/runs", json={
        "goal": "Analyze sales.csv",
        "files": [{"name": "sales.csv", "size": "12 KB", "type": "text/csv"}],
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "started"
    assert data["run_id"]

    # Background task has drained the run by the time the test client returns
    state = client.get("/runs/current").json()
    assert state["run_id"] == data["run_id"]
    assert state["status"] == "completed"
    assert [s["status"] for s in state["plan"]] == ["completed", "completed"]
    assert [a["id"] for a in state["artifacts"]] == ["step-1", "step-2", "summary"]
    assert fresh_state.plan_calls == [("Analyze sales.csv", "sales.csv")]


def test_start_run_without_files():
    resp = client.post("/runs", json={"goal": "Explain churn"})
    assert resp.status_code == 200


def test_start_run_empty_goal():
    resp = client.post("/runs", json={"goal": "   "})
    assert resp.status_code == 400


def test_start_run_while_running():
    server.pipeline.status = "running"
    resp = client.post("/runs", json={"goal": "Second run"})
    assert resp.status_code == 409


def test_get_step_and_artifact():
    client.post("/runs", json={"goal": "Analyze sales.csv"})

    step = client.get("/runs/current/steps/2").json()
    assert step["description"] == "Plot trend"
    assert step["status"] == "completed"
    assert step["code"] == "step_2 = 2"

    artifact = client.get("/runs/current/artifacts/step-1").json()
    assert artifact["kind"] == "code"
    assert artifact["content"] == "step_1 = 1"


def test_get_missing_step_and_artifact():
    assert client.get("/runs/current/steps/9").status_code == 404
    assert client.get("/runs/current/artifacts/summary").status_code == 404


def test_cancel_when_idle():
    resp = client.post("/runs/current/cancel")
    assert resp.status_code == 409


def test_run_events_polling():
    client.post("/runs", json={"goal": "Analyze sales.csv"})
    resp = client.get("/runs/current/events", params={"limit": 500})
    assert resp.status_code == 200
    events = resp.json()
    assert events[0]["type"] == "run.started"
    assert events[-1]["type"] == "run.completed"


def test_get_telemetry():
    resp = client.get("/telemetry")
    assert resp.status_code == 200
    data = resp.json()
    assert data["type"] == "metrics_update"
    assert data["metrics"]["accuracy"] == "94.8%"
    assert len(data["metrics"]["driftChartLabels"]) == 8


def test_telemetry_websocket_sends_on_connect():
    with client.websocket_connect("/telemetry") as ws:
        message = ws.receive_json()
    assert message["type"] == "metrics_update"
    assert set(message["metrics"]) >= {"accuracy", "f1Score", "driftScore", "driftStatus", "recentBatches"}


class DeadSocket:
    """WebSocket stand-in whose transport has already gone away."""

    async def accept(self):
        pass

    async def send_json(self, data):
        raise RuntimeError('Cannot call "send" once a close message has been sent.')


def test_run_event_stream_survives_dead_socket():
    bus = server.pipeline.event_bus

    async def _scenario():
        task = asyncio.create_task(server.run_event_stream(DeadSocket()))
        await asyncio.sleep(0)
        bus.emit_simple("log.entry", "r1", role="System", content="hello")
        await asyncio.wait_for(task, timeout=1)

    asyncio.run(_scenario())
    assert bus._subscribers == []
