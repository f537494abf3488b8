from __future__ import annotations

"""Sensitivity optimizer.

Pure and synchronous: given persisted CalibrationRuns, the user's preferred DPI
and a GameProfile, recommend a sensitivity and cm/360. The recommended DPI is
always the user's own DPI; only sensitivity is derived.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..results.schema import CalibrationRun
from ..util.geometry import sensitivity_for
from .profiles import GAME_PROFILES, GameProfile

TOP_N = 5
MIN_RUNS = 2
FALLBACK_DPI = 800

# Upper cm/360 bound (exclusive) -> mousepad size
MOUSEPAD_BANDS = (
    (25.0, "small"),
    (40.0, "medium"),
    (55.0, "large"),
)
MOUSEPAD_LARGEST = "extra-large"


@dataclass(frozen=True)
class OptimizationResult:
    dpi: int
    sensitivity: float
    cm_per_360: float
    confidence_pct: float
    mousepad_recommendation: str
    reasoning: List[str] = field(default_factory=list)
    top_performance_score: float = 0.0
    runs_considered: int = 0


def combined_score(run: CalibrationRun, profile: GameProfile) -> float:
    w = profile.test_weights
    reaction_score = (1000.0 - min(float(run.reaction_time_ms), 1000.0)) / 1000.0 * 100.0
    return run.accuracy_pct * w.accuracy + reaction_score * w.reaction + run.consistency_pct * w.consistency


def mousepad_for(cm360: float) -> str:
    for upper, label in MOUSEPAD_BANDS:
        if cm360 < upper:
            return label
    return MOUSEPAD_LARGEST


def _range_note(cm360: float, profile: GameProfile) -> str:
    lo, hi = profile.optimal_range.min, profile.optimal_range.max
    if cm360 < lo:
        return f"{cm360:.1f} cm/360 is faster than the usual {profile.name} range ({lo:.0f}-{hi:.0f} cm)."
    if cm360 > hi:
        return f"{cm360:.1f} cm/360 is slower than the usual {profile.name} range ({lo:.0f}-{hi:.0f} cm)."
    return f"{cm360:.1f} cm/360 sits inside the usual {profile.name} range ({lo:.0f}-{hi:.0f} cm)."


def _dpi_note(dpi: int, profile: GameProfile) -> Optional[str]:
    lo, hi = profile.dpi_recommendation.min, profile.dpi_recommendation.max
    if lo <= dpi <= hi:
        return None
    return f"Your DPI ({dpi}) is outside the common {profile.name} band {lo:.0f}-{hi:.0f}; it is kept as-is."


def optimize(
    runs: Sequence[CalibrationRun],
    preferred_dpi: Optional[int],
    profile: Optional[GameProfile] = None,
    *,
    top_n: int = TOP_N,
    min_runs: int = MIN_RUNS,
) -> OptimizationResult:
    """Recommend sensitivity and cm/360 from calibration history.

    With fewer than `min_runs` runs a neutral recommendation at the centre of
    the profile's cm/360 band is returned with zero confidence.
    """
    profile = profile or GAME_PROFILES["default"]
    dpi = int(preferred_dpi) if preferred_dpi and int(preferred_dpi) > 0 else FALLBACK_DPI
    runs = list(runs or [])
    total = len(runs)

    if total < max(1, min_runs):
        cm = profile.optimal_range.mid
        reasoning = [
            f"Not enough calibration data ({total} run{'s' if total != 1 else ''}, need {min_runs}); "
            f"using the centre of the {profile.name} range.",
        ]
        note = _dpi_note(dpi, profile)
        if note:
            reasoning.append(note)
        return OptimizationResult(
            dpi=dpi,
            sensitivity=round(sensitivity_for(dpi, cm), 4),
            cm_per_360=round(cm, 2),
            confidence_pct=0.0,
            mousepad_recommendation=mousepad_for(cm),
            reasoning=reasoning,
            runs_considered=total,
        )

    scores = np.array([combined_score(r, profile) for r in runs], dtype=float)
    # Stable sort keeps submission order among equal scores
    order = np.argsort(-scores, kind="stable")
    top_count = min(max(1, int(top_n)), total)
    top = [runs[i] for i in order[:top_count]]
    avg_cm = float(np.mean([r.cm_per_360 for r in top]))
    consistency_factor = min(1.0, top_count / 3.0)
    confidence = min(100.0, (top_count / total) * consistency_factor * 100.0)

    reasoning = [
        f"Ranked {total} calibration runs by {profile.name} weights "
        f"(accuracy {profile.test_weights.accuracy:.2f}, reaction {profile.test_weights.reaction:.2f}, "
        f"consistency {profile.test_weights.consistency:.2f}).",
        f"Averaged cm/360 of the top {top_count}: {avg_cm:.2f} cm.",
        _range_note(avg_cm, profile),
    ]
    note = _dpi_note(dpi, profile)
    if note:
        reasoning.append(note)

    return OptimizationResult(
        dpi=dpi,
        sensitivity=round(sensitivity_for(dpi, avg_cm), 4),
        cm_per_360=round(avg_cm, 2),
        confidence_pct=round(confidence, 1),
        mousepad_recommendation=mousepad_for(avg_cm),
        reasoning=reasoning,
        top_performance_score=round(float(scores[order[0]]), 2),
        runs_considered=total,
    )
