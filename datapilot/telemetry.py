"""Telemetry simulator: a bounded random walk over model monitoring metrics.

The simulator owns the running scalar state and a fixed-size drift history.
Each tick perturbs the state, rotates the history, and returns a snapshot.
"""

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Callable

from datapilot.config import DRIFT_THRESHOLD, WINDOW_SIZE
from datapilot.models import BatchRecord, MetricsSnapshot

logger = logging.getLogger(__name__)

ACCURACY_BOUNDS = (85.0, 99.0)
F1_BOUNDS = (0.80, 0.99)
MIN_LATENCY = 10.0

ACCURACY_STEP = 0.25
F1_STEP = 0.005
LATENCY_STEP = 2.5
DRIFT_RISE = 0.02
DRIFT_CORRECTION = 0.01
DRIFT_CORRECTION_PROBABILITY = 0.3

LABEL_SPACING = timedelta(minutes=15)
BATCH_SPACING = timedelta(minutes=5)
BATCH_COUNT = 3
LATEST_BATCH_NUMBER = 9821
MODEL_VERSION = "v2.4"

SEED_HISTORY = [0.02, 0.03, 0.025, 0.04, 0.12, 0.18, 0.24, 0.22]


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def drift_status(drift: float, threshold: float = DRIFT_THRESHOLD) -> str:
    """Critical only when drift is strictly above the threshold."""
    return "Critical" if drift > threshold else "Normal"


def model_status(status: str) -> str:
    return "Retraining Required" if status == "Critical" else "System Operational"


def time_labels(now: datetime, count: int) -> list[str]:
    """``count`` HH:MM marks, 15 minutes apart, ending at ``now``."""
    return [(now - i * LABEL_SPACING).strftime("%H:%M") for i in range(count - 1, -1, -1)]


class TelemetrySimulator:
    """Single-owner simulator state, advanced by exactly one tick at a time."""

    def __init__(
        self,
        window_size: int = WINDOW_SIZE,
        drift_threshold: float = DRIFT_THRESHOLD,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
        accuracy: float = 94.8,
        f1: float = 0.912,
        drift: float = 0.24,
        latency: float = 42.0,
        history: list[float] | None = None,
    ):
        if window_size < 1:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self.window_size = window_size
        self.drift_threshold = drift_threshold
        self._rng = rng or random.Random()
        self._clock = clock
        self._lock = threading.Lock()

        self.accuracy = accuracy
        self.f1 = f1
        self.drift = drift
        self.latency = latency
        self.ticks = 0

        seed = list(history if history is not None else SEED_HISTORY)[-window_size:]
        padding = [seed[0] if seed else 0.0] * (window_size - len(seed))
        self._history: deque[float] = deque(padding + seed, maxlen=window_size)

    @property
    def history(self) -> list[float]:
        return list(self._history)

    def tick(self) -> MetricsSnapshot:
        """Advance the random walk by one step and return the new snapshot."""
        with self._lock:
            rng = self._rng
            self.accuracy = clamp(self.accuracy + rng.uniform(-ACCURACY_STEP, ACCURACY_STEP), *ACCURACY_BOUNDS)
            self.f1 = clamp(self.f1 + rng.uniform(-F1_STEP, F1_STEP), *F1_BOUNDS)

            if rng.random() < DRIFT_CORRECTION_PROBABILITY:
                self.drift -= DRIFT_CORRECTION
            else:
                self.drift += DRIFT_RISE
            self.drift = max(0.0, self.drift)

            self.latency = max(MIN_LATENCY, self.latency + rng.uniform(-LATENCY_STEP, LATENCY_STEP))

            # maxlen evicts the oldest sample
            self._history.append(self.drift)
            self.ticks += 1

            snapshot = self._build_snapshot(accuracy_change=rng.uniform(-1.0, 1.0))

        if snapshot.drift_status == "Critical":
            logger.debug(f"Tick {self.ticks}: drift {self.drift:.3f} above threshold")
        return snapshot

    def snapshot(self) -> MetricsSnapshot:
        """Current state without advancing it."""
        with self._lock:
            return self._build_snapshot(accuracy_change=0.0)

    def _build_snapshot(self, accuracy_change: float) -> MetricsSnapshot:
        status = drift_status(self.drift, self.drift_threshold)
        now = self._clock()
        return MetricsSnapshot(
            accuracy=self.accuracy,
            accuracy_change=accuracy_change,
            f1_score=self.f1,
            drift_score=self.drift,
            drift_status=status,
            avg_latency=self.latency,
            model_status=model_status(status),
            drift_chart_labels=time_labels(now, self.window_size),
            drift_chart_values=list(self._history),
            recent_batches=self._recent_batches(now),
        )

    def _recent_batches(self, now: datetime) -> list[BatchRecord]:
        batches = []
        for i in range(BATCH_COUNT):
            ts = (now - i * BATCH_SPACING).strftime("%H:%M:%S")
            high_drift = self._rng.random() < 0.2
            batches.append(
                BatchRecord(
                    id=f"#b-{LATEST_BATCH_NUMBER - i}",
                    timestamp=f"Today, {ts}",
                    version=MODEL_VERSION,
                    quality="100% Valid" if self._rng.random() < 0.9 else "98% Valid",
                    drift_level="High" if high_drift else "Low",
                )
            )
        return batches
