"""Test core data structures."""

import dataclasses

import pytest

from datapilot.models import (
    Artifact, BatchRecord, CodeResult, Event, GatewayResult, InvalidTransition,
    LogEntry, MetricsSnapshot, PlanStep, generate_id,
)


def test_generate_id():
    id1 = generate_id()
    id2 = generate_id()
    assert len(id1) == 12
    assert id1 != id2


def test_plan_step_defaults():
    step = PlanStep(id=1, description="Load data")
    assert step.status == "pending"
    assert step.code is None
    assert not step.finished


def test_plan_step_lifecycle():
    step = PlanStep(id=1, description="Load data")
    step.transition("active")
    step.transition("completed")
    assert step.finished


@pytest.mark.parametrize("path", [
    ["completed"],
    ["active", "pending"],
    ["active", "failed", "active"],
    ["active", "completed", "failed"],
])
def test_plan_step_never_regresses(path):
    step = PlanStep(id=1, description="x")
    with pytest.raises(InvalidTransition):
        for status in path:
            step.transition(status)


def test_plan_step_rejects_unknown_status():
    step = PlanStep(id=1, description="x")
    with pytest.raises(InvalidTransition, match="unknown status"):
        step.transition("done")
    assert step.status == "pending"


def test_artifact_is_immutable():
    artifact = Artifact(id="step-1", title="Step 1", kind="code", content="x = 1", language="python")
    with pytest.raises(dataclasses.FrozenInstanceError):
        artifact.content = "x = 2"
    assert artifact.to_dict()["language"] == "python"


def test_gateway_result_degraded():
    ok = GatewayResult(["a"])
    bad = GatewayResult.degraded(CodeResult("# err", "why"), "timeout")
    assert ok.ok and ok.error is None
    assert not bad.ok
    assert bad.error == "timeout"
    assert bad.value.code == "# err"


def test_log_entry_to_dict():
    entry = LogEntry(role="Planner", content="Plan created", kind="plan")
    d = entry.to_dict()
    assert d["role"] == "Planner"
    assert d["kind"] == "plan"
    assert "ts" in d and "id" in d


def test_event():
    event = Event(type="plan.ready", run_id="r1", data={"steps": []})
    d = event.to_dict()
    assert d["type"] == "plan.ready"
    assert d["run_id"] == "r1"
    assert d["data"]["steps"] == []


def test_metrics_snapshot_wire_format():
    snapshot = MetricsSnapshot(
        accuracy=94.84,
        accuracy_change=-0.46,
        f1_score=0.9121,
        drift_score=0.244,
        drift_status="Critical",
        avg_latency=42.9,
        model_status="Retraining Required",
        drift_chart_labels=["09:00", "09:15"],
        drift_chart_values=[0.02, 0.24],
        recent_batches=[BatchRecord("#b-9821", "Today, 10:40:12", "v2.4", "100% Valid", "Low")],
    )
    d = snapshot.to_dict()
    assert d["accuracy"] == "94.8%"
    assert d["accuracyChange"] == "-0.5%"
    assert d["f1Score"] == "0.912"
    assert d["driftScore"] == "0.24"
    assert d["avgLatency"] == "42ms"
    assert d["driftChartValues"] == [0.02, 0.24]
    assert d["recentBatches"][0]["driftLevel"] == "Low"
    assert d["recentBatches"][0]["drift"] == "Low"
