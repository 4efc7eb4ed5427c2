"""Execution context: the transcript of prior steps handed to later ones."""

from __future__ import annotations

from abc import ABC, abstractmethod

from datapilot.models import PlanStep


class ContextAccumulator(ABC):
    """What the pipeline needs from a context: reset, append a step, render."""

    @abstractmethod
    def reset(self):
        """Forget everything; called at the start of each run."""

    @abstractmethod
    def append(self, step: PlanStep, code: str):
        """Record a finished step's code."""

    @abstractmethod
    def render(self) -> str:
        """Text passed to the next generation call."""


class FullHistoryContext(ContextAccumulator):
    """Keeps every step's code verbatim. Grows with the plan, never truncated."""

    def __init__(self):
        self._parts: list[str] = []

    def reset(self):
        self._parts = []

    def append(self, step: PlanStep, code: str):
        self._parts.append(format_step(step, code))

    def render(self) -> str:
        return "".join(self._parts)

    def __len__(self) -> int:
        return len(self._parts)


def format_step(step: PlanStep, code: str) -> str:
    return f"### Step {step.id}: {step.description}\n{code}\n\n"
