"""Test EventBus."""

import asyncio

from datapilot.events import EventBus
from datapilot.models import Event


def test_emit_and_recent():
    bus = EventBus()
    bus.emit(Event(type="run.started", run_id="r1", data={"goal": "x"}))
    bus.emit(Event(type="plan.ready", run_id="r1", data={"steps": []}))

    recent = bus.recent(limit=10)
    assert len(recent) == 2
    assert recent[0].type == "run.started"
    assert recent[1].type == "plan.ready"


def test_emit_simple():
    bus = EventBus()
    event = bus.emit_simple("step.status_changed", "r1", step_id=1, status="active")

    recent = bus.recent()
    assert recent == [event]
    assert recent[0].data["step_id"] == 1


def test_recent_pagination():
    bus = EventBus()
    for i in range(10):
        bus.emit_simple("log.entry", "r1", i=i)

    assert len(bus.recent(limit=3)) == 3
    assert len(bus.recent(limit=100)) == 10
    assert [e.data["i"] for e in bus.recent(limit=2, offset=1)] == [7, 8]
    assert bus.recent(limit=5, offset=20) == []


def test_history_is_bounded():
    bus = EventBus(history_limit=5)
    for i in range(8):
        bus.emit_simple("log.entry", "r1", i=i)
    assert [e.data["i"] for e in bus.recent(limit=50)] == [3, 4, 5, 6, 7]


def test_subscribers_receive_in_order():
    bus = EventBus()
    q = bus.subscribe()
    bus.emit_simple("a", "r1")
    bus.emit_simple("b", "r1")
    assert q.get_nowait().type == "a"
    assert q.get_nowait().type == "b"

    bus.unsubscribe(q)
    bus.emit_simple("c", "r1")
    assert q.empty()


def test_full_subscriber_does_not_block_others():
    bus = EventBus()
    slow = bus.subscribe()
    fast: asyncio.Queue = asyncio.Queue()
    bus._subscribers.append(fast)
    for i in range(1005):
        bus.emit_simple("log.entry", "r1", i=i)
    assert slow.qsize() == 1000
    assert fast.qsize() == 1005
