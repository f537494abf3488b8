from __future__ import annotations

"""Result sinks and the fan-out result manager.

A sink receives finished SessionMetrics and CalibrationRuns. The manager hands
every submission to each configured sink; a failing sink is reported and the
others still run, so persistence never affects in-memory session state.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol
from uuid import uuid4

import pandas as pd

from storage.schema import CalibrationRunRow, ShotEventRow, TrainingResultRow
from storage.store import (
    append_calibration_runs,
    append_shot_events,
    append_training_results,
    init_store,
    validate_calibration_runs,
    validate_results,
    validate_shot_events,
)

from ..app.explain import trace as xtrace
from .schema import CalibrationRun, SessionMetrics


class ResultSink(Protocol):
    def submit_result(self, metrics: SessionMetrics) -> None: ...

    def submit_calibration(self, run: CalibrationRun) -> None: ...


class InMemoryResultSink:
    def __init__(self) -> None:
        self.results: List[SessionMetrics] = []
        self.calibration_runs: List[CalibrationRun] = []

    def submit_result(self, metrics: SessionMetrics) -> None:
        self.results.append(metrics)

    def submit_calibration(self, run: CalibrationRun) -> None:
        self.calibration_runs.append(run)


def _mean_or_none(values: List[float]) -> Optional[float]:
    return float(sum(values) / len(values)) if values else None


def result_rows(metrics: SessionMetrics, *, session_id: str, user_id: str, started: datetime):
    """Map a finished session to one TrainingResultRow plus one ShotEventRow per click."""
    result = TrainingResultRow(
        session_id=session_id,
        user_id=user_id,
        session_start=started,
        mode=metrics.mode,
        difficulty=metrics.difficulty,
        duration_s=metrics.duration_s,
        target_size=metrics.target_size,
        score=metrics.score,
        accuracy=metrics.accuracy_pct,
        total_shots=metrics.total_shots,
        total_hits=metrics.total_hits,
        total_misses=metrics.total_misses,
        expired_targets=metrics.expired_targets,
        avg_reaction_ms=metrics.avg_reaction_ms,
        kills_per_second=metrics.kills_per_second,
        consistency=metrics.consistency_pct,
        streak_best=metrics.streak_best,
        tracking_accuracy=metrics.tracking_accuracy_pct,
        avg_flick_distance=_mean_or_none(metrics.flick_distances),
        avg_switch_ms=_mean_or_none(metrics.switch_speeds_ms),
    )
    shots: List[Dict[str, Any]] = []
    for h in metrics.hit_positions:
        shots.append(
            {
                "kind": "hit",
                "t_ms": h["tMs"],
                "x": h["x"],
                "y": h["y"],
                "target_x": h.get("targetX"),
                "target_y": h.get("targetY"),
                "reaction_ms": h.get("reactionMs"),
                "flick_distance": h.get("flickDistance"),
                "switch_ms": h.get("switchMs"),
                "points": h.get("points", 0),
            }
        )
    for m in metrics.miss_positions:
        shots.append({"kind": "miss", "t_ms": m["tMs"], "x": m["x"], "y": m["y"], "nearest_distance": m.get("nearestDistance")})
    shots.sort(key=lambda s: s["t_ms"])
    events = [
        ShotEventRow(session_id=session_id, session_start=started, mode=metrics.mode, seq=i, **s)
        for i, s in enumerate(shots)
    ]
    return result, events


def calibration_row(run: CalibrationRun, *, sweep_id: str, user_id: str, created: datetime) -> CalibrationRunRow:
    return CalibrationRunRow(
        sweep_id=sweep_id,
        user_id=user_id,
        created_at=created,
        dpi=run.dpi,
        sensitivity=run.sensitivity,
        cm_per_360=run.cm_per_360,
        accuracy_pct=run.accuracy_pct,
        consistency_pct=run.consistency_pct,
        reaction_time_ms=run.reaction_time_ms,
        path_efficiency_pct=run.path_efficiency_pct,
        movement_smoothness_pct=run.movement_smoothness_pct,
        overshoot_rate=run.overshoot_rate,
        undershoot_rate=run.undershoot_rate,
        correction_rate=run.correction_rate,
        prediction_accuracy_pct=run.prediction_accuracy_pct,
    )


def calibration_runs_from_frame(df: pd.DataFrame) -> List[CalibrationRun]:
    """Rebuild CalibrationRuns from the persisted table for the optimizer."""
    runs: List[CalibrationRun] = []
    for r in df.itertuples(index=False):
        runs.append(
            CalibrationRun(
                dpi=int(r.dpi),
                sensitivity=float(r.sensitivity),
                cm_per_360=float(r.cm_per_360),
                accuracy_pct=float(r.accuracy_pct),
                consistency_pct=float(r.consistency_pct),
                reaction_time_ms=float(r.reaction_time_ms),
                path_efficiency_pct=float(r.path_efficiency_pct),
                movement_smoothness_pct=float(r.movement_smoothness_pct),
                overshoot_rate=float(r.overshoot_rate),
                undershoot_rate=float(r.undershoot_rate),
                correction_rate=float(r.correction_rate),
                prediction_accuracy_pct=float(r.prediction_accuracy_pct),
            )
        )
    return runs


class ParquetResultSink:
    """Writes sessions, shot events and calibration runs into the Parquet store."""

    def __init__(self, data_dir: str | Path, *, user_id: str = "local", sweep_id: Optional[str] = None) -> None:
        self.data_dir = Path(data_dir)
        self.user_id = user_id
        self.sweep_id = sweep_id or str(uuid4())
        init_store(self.data_dir)

    def submit_result(self, metrics: SessionMetrics) -> None:
        sid = str(uuid4())
        row, events = result_rows(metrics, session_id=sid, user_id=self.user_id, started=datetime.now(timezone.utc))
        # Both tables validate before either is written
        results_df = validate_results([row])
        shots_df = validate_shot_events(events) if events else None
        append_training_results(results_df, self.data_dir)
        if shots_df is not None:
            append_shot_events(shots_df, self.data_dir)
        xtrace("stored_result", {"session_id": sid, "shots": len(events)})

    def submit_calibration(self, run: CalibrationRun) -> None:
        row = calibration_row(run, sweep_id=self.sweep_id, user_id=self.user_id, created=datetime.now(timezone.utc))
        append_calibration_runs(validate_calibration_runs([row]), self.data_dir)


class ResultManager:
    def __init__(self, sinks: Optional[List[ResultSink]] = None) -> None:
        self.sinks: List[ResultSink] = list(sinks or [])

    def add_sink(self, sink: ResultSink) -> None:
        self.sinks.append(sink)

    def submit_result(self, metrics: SessionMetrics) -> int:
        """Hand the session to every sink. Returns the number of sinks that failed."""
        failed = 0
        for sink in self.sinks:
            try:
                sink.submit_result(metrics)
            except Exception as e:
                failed += 1
                print(f"[WARN] {type(sink).__name__} could not store session: {e}")
        return failed

    def submit_calibration(self, run: CalibrationRun) -> int:
        failed = 0
        for sink in self.sinks:
            try:
                sink.submit_calibration(run)
            except Exception as e:
                failed += 1
                print(f"[WARN] {type(sink).__name__} could not store calibration run: {e}")
        return failed
