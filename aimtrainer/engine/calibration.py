from __future__ import annotations

"""Calibration session: orbit-tracking sub-tests across a DPI/sensitivity sweep.

Each multiplier m yields one sub-test at dpi = round(dpi * m) and
sensitivity = round(sensitivity * m, 2). When a sub-test ends its metrics are
frozen into a CalibrationRun and handed to the optional `on_run` sink.
All state lives on the instance; nothing survives between sessions.
"""

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from ..app.explain import trace as xtrace
from ..drills.orbit import OrbitDirector
from ..results.schema import CalibrationRun
from ..util.geometry import Canvas, cm_per_360
from .motion import MotionAnalysis
from .session import TestEngine, TestSession

DEFAULT_MULTIPLIERS = (0.8, 0.9, 1.0, 1.1, 1.2)


class ConfigurationMissingError(ValueError):
    """Raised when the calibration flow starts without usable DPI/sensitivity."""


@dataclass(frozen=True)
class SweepStep:
    index: int
    dpi: int
    sensitivity: float


def require_settings(dpi, sensitivity) -> Tuple[int, float]:
    try:
        d = int(dpi)
        s = float(sensitivity)
    except (TypeError, ValueError):
        raise ConfigurationMissingError("configuration missing: dpi and sensitivity are required") from None
    if d <= 0 or s <= 0:
        raise ConfigurationMissingError(f"configuration missing: invalid dpi={dpi!r} sensitivity={sensitivity!r}")
    return d, s


def build_run(step: SweepStep, analysis: MotionAnalysis, duration_s: float) -> CalibrationRun:
    duration_s = max(float(duration_s), 1e-9)
    accuracy = min(100.0, analysis.on_target_ms / (duration_s * 1000.0) * 100.0)
    return CalibrationRun(
        dpi=step.dpi,
        sensitivity=step.sensitivity,
        cm_per_360=cm_per_360(step.dpi, step.sensitivity),
        accuracy_pct=accuracy,
        consistency_pct=analysis.distance_consistency_pct,
        reaction_time_ms=analysis.reacquisition_ms,
        path_efficiency_pct=analysis.path_efficiency_pct,
        movement_smoothness_pct=analysis.movement_smoothness_pct,
        overshoot_rate=analysis.overshoots / duration_s,
        undershoot_rate=analysis.undershoots / duration_s,
        correction_rate=analysis.corrections / duration_s,
        prediction_accuracy_pct=analysis.prediction_accuracy_pct,
        avg_distance=analysis.mean_distance,
    )


class CalibrationSession:
    def __init__(
        self,
        dpi,
        sensitivity,
        *,
        multipliers: Sequence[float] = DEFAULT_MULTIPLIERS,
        duration_s: float = 30.0,
        canvas: Optional[Canvas] = None,
        orbit_radius: float = 150.0,
        angular_speed: float = 0.02,
        target_size: float = 50.0,
        rng: Optional[random.Random] = None,
        on_run: Optional[Callable[[CalibrationRun], None]] = None,
    ) -> None:
        self.base_dpi, self.base_sensitivity = require_settings(dpi, sensitivity)
        if not multipliers:
            raise ValueError("at least one sweep multiplier is required")
        self.duration_s = float(duration_s)
        self.canvas = canvas or Canvas()
        self.params = {"targetSize": float(target_size), "orbitRadius": float(orbit_radius), "angularSpeed": float(angular_speed)}
        self.rng = rng or random.Random()
        self.on_run = on_run
        self.steps: List[SweepStep] = [
            SweepStep(i, int(round(self.base_dpi * m)), round(self.base_sensitivity * m, 2))
            for i, m in enumerate(multipliers)
        ]
        self.runs: List[CalibrationRun] = []

    @property
    def done(self) -> bool:
        return len(self.runs) >= len(self.steps)

    @property
    def current(self) -> Optional[SweepStep]:
        return None if self.done else self.steps[len(self.runs)]

    def make_engine(self) -> TestEngine:
        """Fresh engine for the current sweep step."""
        director = OrbitDirector(self.canvas, self.params, self.rng)
        return TestEngine(TestSession("calibration", "medium", self.duration_s), director)

    def complete(self, engine: TestEngine) -> CalibrationRun:
        """Freeze the finished sub-test into a CalibrationRun and submit it."""
        step = self.current
        if step is None:
            raise RuntimeError("calibration sweep already complete")
        if engine.analysis is None:
            raise RuntimeError("sub-test has not ended yet")
        run = build_run(step, engine.analysis, self.duration_s)
        self.runs.append(run)
        xtrace("calibration_run", {"step": step.index, "dpi": run.dpi, "sens": run.sensitivity, "acc": round(run.accuracy_pct, 1)})
        if self.on_run is not None:
            try:
                self.on_run(run)
            except Exception as e:
                print(f"[WARN] Calibration run submission failed: {e}")
        return run

    def run_all(self, drive: Callable[[SweepStep, TestEngine], None]) -> List[CalibrationRun]:
        """Run every remaining step. `drive` must run the engine until it ends."""
        while not self.done:
            step = self.current
            engine = self.make_engine()
            drive(step, engine)
            if engine.analysis is None:
                # Cancelled sub-test: stop the sweep without a partial run
                xtrace("calibration_cancelled", {"step": step.index})
                break
            self.complete(engine)
        return list(self.runs)

    def best_run(self) -> Optional[CalibrationRun]:
        """Best configuration of this sweep by 60% accuracy + 40% consistency."""
        if not self.runs:
            return None
        return max(self.runs, key=lambda r: r.accuracy_pct * 0.6 + r.consistency_pct * 0.4)
