from __future__ import annotations

"""Motion sample collector and cursor-movement analysis.

One immutable Sample is recorded per tick. Overshoot, undershoot and
correction detection run incrementally on a trailing window; path efficiency,
smoothness and prediction are computed in one numpy pass at the end.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..stats.stats import consistency_pct
from ..util.geometry import distance

UNDERSHOOT_VELOCITY = 50.0  # px/s
OVERSHOOT_FACTOR = 1.5
UNDERSHOOT_RADIUS_FACTOR = 1.2
CORRECTION_MIN_VELOCITY = 100.0  # px/s
CORRECTION_WINDOW = 4
SMOOTHNESS_MIN_SAMPLES = 10
SMOOTHNESS_MIN_MEAN_VELOCITY = 10.0  # px/s
PREDICTION_LOOKAHEAD = 5
PREDICTION_MIN_DISPLACEMENT = 5.0  # px
PREDICTION_DEFAULT = 50.0
REACQUISITION_JUMP = 50.0  # px
REACQUISITION_DEFAULT_MS = 500.0
DISTANCE_CONSISTENCY_MIN_SAMPLES = 10


@dataclass(frozen=True)
class Sample:
    t_offset_ms: float
    cursor_x: float
    cursor_y: float
    target_x: Optional[float]
    target_y: Optional[float]
    distance: Optional[float]
    velocity_px_s: float
    on_target: bool


@dataclass(frozen=True)
class MotionAnalysis:
    sample_count: int
    overshoots: int
    undershoots: int
    corrections: int
    path_efficiency_pct: float
    movement_smoothness_pct: float
    prediction_accuracy_pct: float
    on_target_ms: float
    mean_distance: float
    distance_consistency_pct: float
    reacquisition_ms: float


class MotionSampleCollector:
    """Per-session, append-only recorder of cursor/target state."""

    def __init__(self, target_size: float) -> None:
        self.target_size = float(target_size)
        self._samples: List[Sample] = []
        self.overshoots = 0
        self.undershoots = 0
        self.corrections = 0
        self.on_target_ms = 0.0

    @property
    def samples(self) -> Tuple[Sample, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def record(
        self,
        t_ms: float,
        cursor_x: float,
        cursor_y: float,
        target_x: Optional[float] = None,
        target_y: Optional[float] = None,
    ) -> Sample:
        prev = self._samples[-1] if self._samples else None
        velocity = 0.0
        if prev is not None:
            dt = max(1.0, t_ms - prev.t_offset_ms)
            velocity = distance(prev.cursor_x, prev.cursor_y, cursor_x, cursor_y) / dt * 1000.0
        dist: Optional[float] = None
        on_target = False
        if target_x is not None and target_y is not None:
            dist = distance(cursor_x, cursor_y, target_x, target_y)
            on_target = dist <= self.target_size / 2.0
        if on_target:
            self.on_target_ms += max(0.0, t_ms - (prev.t_offset_ms if prev is not None else 0.0))
        sample = Sample(
            t_offset_ms=float(t_ms),
            cursor_x=float(cursor_x),
            cursor_y=float(cursor_y),
            target_x=target_x,
            target_y=target_y,
            distance=dist,
            velocity_px_s=velocity,
            on_target=on_target,
        )
        self._samples.append(sample)
        self._detect_overshoot_undershoot()
        self._detect_correction()
        return sample

    def reset(self) -> None:
        self._samples = []
        self.overshoots = 0
        self.undershoots = 0
        self.corrections = 0
        self.on_target_ms = 0.0

    # --- incremental inference -----------------------------------------------
    def _detect_overshoot_undershoot(self) -> None:
        if len(self._samples) < 4:
            return
        window = self._samples[-4:]
        if any(s.distance is None for s in window):
            return
        d0, d1, d2, d3 = (s.distance for s in window)
        if not (d0 > d1 > d2):
            return
        if d3 > d2:
            if d3 > OVERSHOOT_FACTOR * min(d0, d1, d2, d3):
                self.overshoots += 1
            return
        v_prev = window[2].velocity_px_s
        v_now = window[3].velocity_px_s
        if v_prev >= UNDERSHOOT_VELOCITY > v_now and d3 > UNDERSHOOT_RADIUS_FACTOR * (self.target_size / 2.0):
            self.undershoots += 1

    def _detect_correction(self) -> None:
        if len(self._samples) < CORRECTION_WINDOW:
            return
        recent = [s.velocity_px_s for s in self._samples[-CORRECTION_WINDOW:]]
        current, previous = recent[-1], recent[-2]
        avg = sum(recent) / len(recent)
        if abs(current - previous) > 2 * avg and current > CORRECTION_MIN_VELOCITY:
            self.corrections += 1

    # --- end-of-session analysis -----------------------------------------------
    def analyze(self) -> MotionAnalysis:
        dists = [s.distance for s in self._samples if s.distance is not None]
        return MotionAnalysis(
            sample_count=len(self._samples),
            overshoots=self.overshoots,
            undershoots=self.undershoots,
            corrections=self.corrections,
            path_efficiency_pct=path_efficiency(self._samples),
            movement_smoothness_pct=movement_smoothness([s.velocity_px_s for s in self._samples]),
            prediction_accuracy_pct=prediction_accuracy(self._samples),
            on_target_ms=self.on_target_ms,
            mean_distance=float(np.mean(dists)) if dists else 0.0,
            distance_consistency_pct=consistency_pct(dists, min_samples=DISTANCE_CONSISTENCY_MIN_SAMPLES),
            reacquisition_ms=reacquisition_time(self._samples),
        )


def _arrays(samples: Sequence[Sample]):
    cx = np.array([s.cursor_x for s in samples], dtype=float)
    cy = np.array([s.cursor_y for s in samples], dtype=float)
    tx = np.array([np.nan if s.target_x is None else s.target_x for s in samples], dtype=float)
    ty = np.array([np.nan if s.target_y is None else s.target_y for s in samples], dtype=float)
    return cx, cy, tx, ty


def path_efficiency(samples: Sequence[Sample]) -> float:
    """Sum of |prev - target_i| over sum of |cur - prev|, in percent, clamped to 0-100.

    The optimal length of each segment is the straight line from the previous
    cursor sample to the current target position. Segments without a target
    are skipped.
    """
    if len(samples) < 2:
        return 0.0
    cx, cy, tx, ty = _arrays(samples)
    optimal = np.hypot(cx[:-1] - tx[1:], cy[:-1] - ty[1:])
    actual = np.hypot(np.diff(cx), np.diff(cy))
    valid = ~np.isnan(optimal)
    total_actual = float(actual[valid].sum())
    if total_actual <= 0:
        return 0.0
    total_optimal = float(optimal[valid].sum())
    return float(np.clip(total_optimal / total_actual * 100.0, 0.0, 100.0))


def movement_smoothness(velocities: Sequence[float]) -> float:
    """Mean of max(0, 1 - (|dv_i| + |dv_i+1|) / (2 * local mean)), scaled to 0-100."""
    v = np.asarray(velocities, dtype=float)
    if v.size < SMOOTHNESS_MIN_SAMPLES:
        return 0.0
    prev, cur, nxt = v[1:-2], v[2:-1], v[3:]
    local_mean = (prev + cur + nxt) / 3.0
    valid = local_mean > SMOOTHNESS_MIN_MEAN_VELOCITY
    if not valid.any():
        return 0.0
    change = np.abs(cur - prev) + np.abs(nxt - cur)
    score = np.clip(1.0 - change[valid] / (2.0 * local_mean[valid]), 0.0, None)
    return float(score.mean() * 100.0)


def prediction_accuracy(samples: Sequence[Sample]) -> float:
    """How well cursor motion follows target motion over 5-sample windows."""
    k = PREDICTION_LOOKAHEAD
    if len(samples) <= k:
        return PREDICTION_DEFAULT
    cx, cy, tx, ty = _arrays(samples)
    tdx, tdy = tx[k:] - tx[:-k], ty[k:] - ty[:-k]
    pdx, pdy = cx[k:] - cx[:-k], cy[k:] - cy[:-k]
    with np.errstate(invalid="ignore"):
        moving = (np.abs(tdx) > PREDICTION_MIN_DISPLACEMENT) | (np.abs(tdy) > PREDICTION_MIN_DISPLACEMENT)
    moving &= ~(np.isnan(tdx) | np.isnan(tdy))
    if not moving.any():
        return PREDICTION_DEFAULT
    tdx, tdy, pdx, pdy = tdx[moving], tdy[moving], pdx[moving], pdy[moving]
    norms = np.hypot(tdx, tdy) * np.hypot(pdx, pdy)
    cos = np.divide(tdx * pdx + tdy * pdy, norms, out=np.zeros_like(norms), where=norms > 0)
    return float(np.clip(cos, 0.0, None).mean() * 100.0)


def reacquisition_time(samples: Sequence[Sample]) -> float:
    """Mean time from the last large distance jump to getting back on target."""
    times: List[float] = []
    last_change = 0.0
    prev: Optional[Sample] = None
    for s in samples:
        if s.distance is None:
            continue
        if prev is not None:
            if not prev.on_target and s.on_target:
                times.append(s.t_offset_ms - last_change)
            if abs(s.distance - prev.distance) > REACQUISITION_JUMP:
                last_change = s.t_offset_ms
        prev = s
    return float(np.mean(times)) if times else REACQUISITION_DEFAULT_MS
