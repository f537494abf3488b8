from __future__ import annotations

"""Result schema dataclasses for finished sessions and calibration runs."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SessionMetrics:
    mode: str
    difficulty: str
    duration_s: float
    target_size: float
    total_shots: int
    total_hits: int
    total_misses: int
    expired_targets: int
    targets_seen: int
    reaction_times_ms: List[float]
    streak_best: int
    accuracy_pct: float
    avg_reaction_ms: float
    kills_per_second: float
    consistency_pct: float
    score: int
    # mode-specific
    flick_distances: List[float] = field(default_factory=list)
    switch_speeds_ms: List[float] = field(default_factory=list)
    tracking_accuracy_pct: Optional[float] = None
    hit_positions: List[Dict[str, Any]] = field(default_factory=list)
    miss_positions: List[Dict[str, Any]] = field(default_factory=list)
    # calibration drill only
    overshoots: Optional[int] = None
    undershoots: Optional[int] = None
    corrections: Optional[int] = None
    path_efficiency_pct: Optional[float] = None
    movement_smoothness_pct: Optional[float] = None
    prediction_accuracy_pct: Optional[float] = None


@dataclass(frozen=True)
class CalibrationRun:
    """One tested (dpi, sensitivity) configuration. Rates are events per second."""

    dpi: int
    sensitivity: float
    cm_per_360: float
    accuracy_pct: float
    consistency_pct: float
    reaction_time_ms: float
    path_efficiency_pct: float
    movement_smoothness_pct: float
    overshoot_rate: float
    undershoot_rate: float
    correction_rate: float
    prediction_accuracy_pct: float
    avg_distance: float = 0.0

    @property
    def inches_per_360(self) -> float:
        return self.cm_per_360 / 2.54
