"""FastAPI server: analysis runs and the live telemetry stream."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import BackgroundTasks, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from datapilot.broadcast import BroadcastEngine, make_message
from datapilot.config import SERVER_HOST, SERVER_PORT
from datapilot.models import Event
from datapilot.pipeline import Pipeline, RunInProgress

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

pipeline = Pipeline()
broadcaster = BroadcastEngine()


@asynccontextmanager
async def lifespan(app: FastAPI):
    broadcaster.start()
    yield
    await broadcaster.stop()


app = FastAPI(title="DataPilot", version="1.0", description="Agentic data science workspace", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------


class FileInfo(BaseModel):
    name: str
    size: str = ""
    type: str = ""


class StartRunRequest(BaseModel):
    goal: str
    files: list[FileInfo] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


@app.post("/runs")
async def start_run(req: StartRunRequest, background_tasks: BackgroundTasks) -> dict:
    """Start a run. Only file names are passed on; contents never reach the pipeline."""
    goal = req.goal.strip()
    if not goal:
        raise HTTPException(status_code=400, detail="Goal must not be empty")

    events = pipeline.run(goal, [f.name for f in req.files])
    try:
        # Pull the first event so the run is marked in progress before we return
        first = await anext(events)
    except RunInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))

    background_tasks.add_task(_drain, events)
    logger.info(f"Run {first.run_id} accepted: {goal[:80]}")
    return {"status": "started", "run_id": first.run_id}


@app.get("/runs/current")
async def get_current_run() -> dict:
    return pipeline.state()


@app.get("/runs/current/steps/{step_id}")
async def get_step(step_id: int) -> dict:
    step = pipeline.plan.get(step_id)
    if not step:
        raise HTTPException(status_code=404, detail=f"Step {step_id} not found")
    return step.to_dict()


@app.get("/runs/current/artifacts/{artifact_id}")
async def get_artifact(artifact_id: str) -> dict:
    artifact = pipeline.artifacts.get(artifact_id)
    if not artifact:
        raise HTTPException(status_code=404, detail=f"Artifact {artifact_id} not found")
    return artifact.to_dict()


@app.post("/runs/current/cancel")
async def cancel_run() -> dict:
    if not pipeline.cancel():
        raise HTTPException(status_code=409, detail="No run in progress")
    return {"status": "cancelling", "run_id": pipeline.run_id}


@app.get("/runs/current/events")
async def get_run_events(limit: int = 50, offset: int = 0) -> list[dict]:
    """Recent pipeline events (polling fallback)."""
    return [e.to_dict() for e in pipeline.event_bus.recent(limit=limit, offset=offset)]


@app.websocket("/runs/current/events")
async def run_event_stream(websocket: WebSocket):
    """WebSocket stream of pipeline events."""
    await websocket.accept()
    queue = pipeline.event_bus.subscribe()
    try:
        while True:
            event = await queue.get()
            await websocket.send_json(event.to_dict())
    except WebSocketDisconnect:
        pass
    except RuntimeError as e:
        logger.warning(f"Run event subscriber transport error: {e}")
    finally:
        pipeline.event_bus.unsubscribe(queue)


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------


@app.get("/telemetry")
async def get_telemetry() -> dict:
    return broadcaster.latest or make_message(broadcaster.simulator.snapshot())


@app.websocket("/telemetry")
async def telemetry_stream(websocket: WebSocket):
    """Metrics stream: one message on connect, then one per tick."""
    await websocket.accept()
    sub = broadcaster.subscribe()
    try:
        while True:
            message = await sub.get()
            await websocket.send_json(message)
    except WebSocketDisconnect:
        pass
    except RuntimeError as e:
        # Starlette raises RuntimeError when sending on a socket that has gone away
        logger.warning(f"Telemetry subscriber {sub.id} transport error: {e}")
    finally:
        broadcaster.unsubscribe(sub)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _drain(events: AsyncIterator[Event]):
    async for _ in events:
        pass


# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------


def main():
    """Start the DataPilot server."""
    print(f"Starting DataPilot server on {SERVER_HOST}:{SERVER_PORT}")
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT, log_level="info")


if __name__ == "__main__":
    main()
