"""Orchestration pipeline: plan, generate code per step, summarize.

One run at a time. Steps execute strictly in plan order because each step's
prompt carries everything the earlier steps produced.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator

from datapilot.config import STEP_DELAY
from datapilot.context import ContextAccumulator, FullHistoryContext
from datapilot.events import EventBus
from datapilot.gateway import AgentGateway
from datapilot.models import Artifact, Event, LogEntry, PlanStep, generate_id
from datapilot.store import ArtifactStore, PlanBoard

logger = logging.getLogger(__name__)

SUMMARY_ARTIFACT_ID = "summary"
SUMMARY_TITLE = "Final Analysis Report"
NO_FILES = "No files uploaded"


class RunInProgress(RuntimeError):
    """Raised when a run is started while another one is still executing."""


class Pipeline:
    """Drives a single run and owns its plan, artifacts, logs and context."""

    def __init__(
        self,
        gateway: AgentGateway | None = None,
        context: ContextAccumulator | None = None,
        event_bus: EventBus | None = None,
        step_delay: float = STEP_DELAY,
    ):
        self._gateway = gateway
        self.context = context or FullHistoryContext()
        self.event_bus = event_bus or EventBus()
        self.step_delay = step_delay

        self.run_id: str | None = None
        self.status = "idle"  # idle | running | completed | failed
        self.goal = ""
        self.files: list[str] = []
        self.plan = PlanBoard()
        self.artifacts = ArtifactStore()
        self.logs: list[LogEntry] = []
        self._cancel_requested = False

    @property
    def gateway(self) -> AgentGateway:
        if self._gateway is None:
            self._gateway = AgentGateway()
        return self._gateway

    @property
    def is_running(self) -> bool:
        return self.status == "running"

    def cancel(self) -> bool:
        """Ask the current run to stop before its next step. Returns False if idle."""
        if not self.is_running:
            return False
        self._cancel_requested = True
        logger.info(f"Run {self.run_id}: cancellation requested")
        return True

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, goal: str, file_names: list[str]) -> AsyncIterator[Event]:
        """Execute a full run, yielding every event as it is emitted."""
        if self.is_running:
            raise RunInProgress(f"Run {self.run_id} is still in progress")
        self._reset(goal, file_names)
        logger.info(f"Run {self.run_id} started: {goal[:80]}")

        try:
            yield self._emit("run.started", goal=goal, files=list(self.files))

            async for event in self._planning():
                yield event
            async for event in self._execution():
                yield event
            if self._cancel_requested:
                yield self._finish_cancelled()
                return
            async for event in self._summarization():
                yield event

            self.status = "completed"
            logger.info(f"Run {self.run_id} completed")
            yield self._emit(
                "run.completed",
                steps=len(self.plan),
                failed_steps=[s.id for s in self.plan if s.status == "failed"],
                artifacts=len(self.artifacts),
            )
        except Exception as e:
            logger.error(f"Run {self.run_id} failed: {e}", exc_info=True)
            for event in self._fail(str(e)):
                yield event
        finally:
            if self.status == "running":
                # Consumer stopped iterating before the run finished
                self._abandon()

    async def execute(self, goal: str, file_names: list[str]) -> str:
        """Run to completion without consuming events directly. Returns the final status."""
        async for _ in self.run(goal, file_names):
            pass
        return self.status

    def _reset(self, goal: str, file_names: list[str]):
        self.run_id = generate_id()
        self.status = "running"
        self.goal = goal
        self.files = list(file_names)
        self.plan.clear()
        self.artifacts.clear()
        self.logs = []
        self.context.reset()
        self._cancel_requested = False

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _planning(self) -> AsyncIterator[Event]:
        yield self._log("User", self.goal)
        yield self._log("Planner", "Analyzing request and building a plan...")

        file_context = ", ".join(self.files) if self.files else NO_FILES
        result = await self.gateway.plan(self.goal, file_context)
        if not result.ok:
            yield self._log("System", f"Planner unavailable: {result.error}", kind="error")

        steps = self.plan.replace(result.value)
        yield self._log("Planner", f"Plan created with {len(steps)} steps.", kind="plan")
        yield self._emit("plan.ready", steps=[s.to_dict() for s in steps])

    async def _execution(self) -> AsyncIterator[Event]:
        for step in self.plan:
            if self._cancel_requested:
                return
            async for event in self._execute_step(step):
                yield event
            if self.step_delay > 0:
                await asyncio.sleep(self.step_delay)

    async def _execute_step(self, step: PlanStep) -> AsyncIterator[Event]:
        yield self._set_status(step, "active")
        yield self._log("Coder", f"Working on step {step.id}: {step.description}")

        result = await self.gateway.code_step(step.description, self.context.render())
        generated = result.value
        step.code = generated.code
        step.explanation = generated.explanation

        if generated.explanation:
            yield self._log("Coder", generated.explanation)
        yield self._log("Coder", generated.code, kind="code")

        artifact = Artifact(
            id=f"step-{step.id}",
            title=f"Step {step.id}: {step.description}",
            kind="code",
            content=generated.code,
            language="python",
        )
        yield self._add_artifact(artifact)
        self.context.append(step, generated.code)

        if result.ok:
            yield self._set_status(step, "completed")
        else:
            yield self._log("System", f"Step {step.id} failed: {result.error}", kind="error")
            yield self._set_status(step, "failed")

    async def _summarization(self) -> AsyncIterator[Event]:
        yield self._log("Summary", "Compiling final report...")
        result = await self.gateway.summarize(self.context.render())
        if not result.ok:
            yield self._log("System", f"Summary unavailable: {result.error}", kind="error")

        yield self._add_artifact(
            Artifact(id=SUMMARY_ARTIFACT_ID, title=SUMMARY_TITLE, kind="narrative", content=result.value)
        )
        yield self._log("Summary", "Analysis complete.", kind="success")

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------

    def _finish_cancelled(self) -> Event:
        self.status = "failed"
        self._record_log("System", "Run cancelled.", kind="error")
        logger.info(f"Run {self.run_id} cancelled")
        return self._emit("run.failed", reason="cancelled", error=None)

    def _fail(self, error: str) -> list[Event]:
        events = []
        active = self.plan.active()
        if active:
            events.append(self._set_status(active, "failed"))
        events.append(self._log("System", f"Run failed: {error}", kind="error"))
        self.status = "failed"
        events.append(self._emit("run.failed", reason="error", error=error))
        return events

    def _abandon(self):
        """Close out a run whose consumer went away. Events go to the bus only."""
        active = self.plan.active()
        if active:
            self._set_status(active, "failed")
        self._record_log("System", "Run abandoned.", kind="error")
        self.status = "failed"
        logger.warning(f"Run {self.run_id} abandoned by its consumer")
        self._emit("run.failed", reason="abandoned", error=None)

    # ------------------------------------------------------------------
    # Event helpers
    # ------------------------------------------------------------------

    def _emit(self, type: str, **data: Any) -> Event:
        return self.event_bus.emit_simple(type, self.run_id or "", **data)

    def _record_log(self, role: str, content: str, kind: str = "info") -> LogEntry:
        entry = LogEntry(role=role, content=content, kind=kind)
        self.logs.append(entry)
        return entry

    def _log(self, role: str, content: str, kind: str = "info") -> Event:
        entry = self._record_log(role, content, kind)
        return self._emit("log.entry", **entry.to_dict())

    def _set_status(self, step: PlanStep, status: str) -> Event:
        previous = step.status
        step.transition(status)
        logger.info(f"Run {self.run_id}: step {step.id} {previous} -> {status}")
        return self._emit("step.status_changed", step_id=step.id, previous=previous, status=status)

    def _add_artifact(self, artifact: Artifact) -> Event:
        self.artifacts.append(artifact)
        return self._emit("artifact.added", artifact=artifact.to_dict())

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def state(self) -> dict:
        """JSON-ready view of the current (or last) run."""
        return {
            "run_id": self.run_id,
            "status": self.status,
            "goal": self.goal,
            "files": list(self.files),
            "plan": [s.to_dict() for s in self.plan],
            "artifacts": [a.to_dict() for a in self.artifacts.all()],
            "logs": [entry.to_dict() for entry in self.logs],
        }
