"""In-memory plan and artifact stores. Mutated only by the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from datapilot.models import Artifact, PlanStep


@dataclass
class PlanBoard:
    """Ordered plan steps for the current run."""

    steps: list[PlanStep] = field(default_factory=list)

    def replace(self, descriptions: list[str]) -> list[PlanStep]:
        """Drop the old plan and number the new one from 1."""
        self.steps = [PlanStep(id=i, description=d) for i, d in enumerate(descriptions, start=1)]
        return self.steps

    def clear(self):
        self.steps = []

    def get(self, step_id: int) -> PlanStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def active(self) -> PlanStep | None:
        active = [s for s in self.steps if s.status == "active"]
        if len(active) > 1:
            raise RuntimeError(f"More than one active step: {[s.id for s in active]}")
        return active[0] if active else None

    def __iter__(self):
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)


class ArtifactStore:
    """Append-only artifacts for the current run."""

    def __init__(self):
        self._artifacts: dict[str, Artifact] = {}

    def append(self, artifact: Artifact):
        if artifact.id in self._artifacts:
            raise ValueError(f"Artifact {artifact.id} already recorded")
        self._artifacts[artifact.id] = artifact

    def get(self, artifact_id: str) -> Artifact | None:
        return self._artifacts.get(artifact_id)

    def clear(self):
        self._artifacts = {}

    def all(self) -> list[Artifact]:
        return list(self._artifacts.values())

    def __len__(self) -> int:
        return len(self._artifacts)
