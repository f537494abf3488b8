from __future__ import annotations

"""Session metrics: running totals during a drill and the end-of-session summary."""

import math
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..results.schema import SessionMetrics


def accuracy_pct(hits: int, shots: int) -> float:
    if shots <= 0:
        return 0.0
    return max(0.0, min(100.0, hits / shots * 100.0))


def consistency_pct(values: Sequence[float], min_samples: int = 2) -> float:
    """100 minus the coefficient of variation (population std), floored at 0."""
    if len(values) < max(2, min_samples):
        return 0.0
    arr = np.asarray(values, dtype=float)
    mean = float(arr.mean())
    if mean <= 0:
        return 0.0
    return float(max(0.0, min(100.0, 100.0 - float(arr.std()) / mean * 100.0)))


class MetricsAggregator:
    """Accumulates hits, misses and reaction times for one session.

    Every hit or miss is one shot, so totalShots == totalHits + totalMisses
    holds by construction. Expired targets are tracked separately.
    """

    def __init__(self, mode: str, *, dwell_increment: float = 0.1) -> None:
        self.mode = mode
        self.dwell_increment = float(dwell_increment)
        self.total_shots = 0
        self.total_hits = 0
        self.total_misses = 0
        self.expired_targets = 0
        self.reaction_times: List[float] = []
        self.streak = 0
        self.streak_best = 0
        self.score = 0
        self.flick_distances: List[float] = []
        self.switch_speeds: List[float] = []
        self.tracking_accuracy = 0.0
        self.hit_positions: List[Dict[str, Any]] = []
        self.miss_positions: List[Dict[str, Any]] = []

    def record_hit(
        self,
        t_ms: float,
        x: float,
        y: float,
        *,
        target_x: float,
        target_y: float,
        reaction_ms: float,
        points: int,
        flick_distance: Optional[float] = None,
        switch_ms: Optional[float] = None,
    ) -> None:
        self.total_shots += 1
        self.total_hits += 1
        self.reaction_times.append(float(reaction_ms))
        self.streak += 1
        self.streak_best = max(self.streak_best, self.streak)
        self.score += int(points)
        if flick_distance is not None:
            self.flick_distances.append(float(flick_distance))
        if switch_ms is not None:
            self.switch_speeds.append(float(switch_ms))
        hit = {
            "x": float(x),
            "y": float(y),
            "targetX": float(target_x),
            "targetY": float(target_y),
            "tMs": float(t_ms),
            "reactionMs": float(reaction_ms),
            "points": int(points),
        }
        if flick_distance is not None:
            hit["flickDistance"] = float(flick_distance)
        if switch_ms is not None:
            hit["switchMs"] = float(switch_ms)
        self.hit_positions.append(hit)

    def record_miss(self, t_ms: float, x: float, y: float, nearest_distance: Optional[float] = None) -> None:
        self.total_shots += 1
        self.total_misses += 1
        self.streak = 0
        self.miss_positions.append(
            {
                "x": float(x),
                "y": float(y),
                "tMs": float(t_ms),
                "nearestDistance": None if nearest_distance is None else float(nearest_distance),
            }
        )

    def record_expired(self, count: int = 1) -> None:
        self.expired_targets += int(count)

    def record_dwell(self, on_target: bool) -> None:
        if on_target:
            self.tracking_accuracy = min(100.0, self.tracking_accuracy + self.dwell_increment)

    def finalize(
        self,
        *,
        elapsed_s: float,
        difficulty: str,
        duration_s: float,
        target_size: float,
        targets_seen: int = 0,
        motion: Any = None,
    ) -> SessionMetrics:
        """Build the immutable SessionMetrics for this session.

        `motion` is an optional MotionAnalysis; its cursor-movement fields are
        only reported for the calibration drill.
        """
        score = self.score
        tracking: Optional[float] = None
        if self.mode == "track":
            tracking = min(100.0, self.tracking_accuracy)
            score += int(math.floor(tracking * 10))
        rts = list(self.reaction_times)
        extras: Dict[str, Any] = {}
        if self.mode == "calibration" and motion is not None:
            extras = {
                "overshoots": motion.overshoots,
                "undershoots": motion.undershoots,
                "corrections": motion.corrections,
                "path_efficiency_pct": motion.path_efficiency_pct,
                "movement_smoothness_pct": motion.movement_smoothness_pct,
                "prediction_accuracy_pct": motion.prediction_accuracy_pct,
            }
        return SessionMetrics(
            mode=self.mode,
            difficulty=difficulty,
            duration_s=float(duration_s),
            target_size=float(target_size),
            total_shots=self.total_shots,
            total_hits=self.total_hits,
            total_misses=self.total_misses,
            expired_targets=self.expired_targets,
            targets_seen=int(targets_seen),
            reaction_times_ms=rts,
            streak_best=self.streak_best,
            accuracy_pct=accuracy_pct(self.total_hits, self.total_shots),
            avg_reaction_ms=float(np.mean(rts)) if rts else 0.0,
            kills_per_second=(self.total_hits / elapsed_s) if elapsed_s > 0 else 0.0,
            consistency_pct=consistency_pct(rts),
            score=score,
            flick_distances=list(self.flick_distances),
            switch_speeds_ms=list(self.switch_speeds),
            tracking_accuracy_pct=tracking,
            hit_positions=list(self.hit_positions),
            miss_positions=list(self.miss_positions),
            **extras,
        )


def format_summary(m: SessionMetrics) -> str:
    """Return a human-readable summary of a finished session."""
    lines = [
        f"Mode: {m.mode} ({m.difficulty})",
        f"Score: {m.score}",
        f"Accuracy: {m.accuracy_pct:.1f}% ({m.total_hits}/{m.total_shots})",
        f"Avg reaction: {m.avg_reaction_ms:.0f} ms | consistency {m.consistency_pct:.1f}%",
        f"Kills/s: {m.kills_per_second:.2f} | best streak {m.streak_best}",
    ]
    if m.expired_targets:
        lines.append(f"Expired targets: {m.expired_targets}")
    if m.tracking_accuracy_pct is not None:
        lines.append(f"Tracking accuracy: {m.tracking_accuracy_pct:.1f}%")
    if m.flick_distances:
        lines.append(f"Avg flick distance: {float(np.mean(m.flick_distances)):.0f} px")
    if m.switch_speeds_ms:
        lines.append(f"Avg switch time: {float(np.mean(m.switch_speeds_ms)):.0f} ms")
    if m.path_efficiency_pct is not None:
        lines.append(
            f"Path efficiency {m.path_efficiency_pct:.1f}% | smoothness {m.movement_smoothness_pct:.1f}% | "
            f"prediction {m.prediction_accuracy_pct:.1f}%"
        )
    return "\n".join(lines)
