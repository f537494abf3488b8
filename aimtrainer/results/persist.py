from __future__ import annotations

"""Result payloads and best-effort JSON-lines persistence.

Payloads use the camelCase field names of the submission contract. Typed
lists stay typed until this edge; nothing upstream carries JSON strings.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from .schema import CalibrationRun, SessionMetrics


def build_result_payload(m: SessionMetrics) -> Dict[str, Any]:
    """Submission body for a finished drill session."""
    payload: Dict[str, Any] = {
        "testMode": m.mode,
        "difficulty": m.difficulty,
        "duration": m.duration_s,
        "targetSize": m.target_size,
        "score": int(m.score),
        "accuracy": round(m.accuracy_pct, 2),
        "totalShots": int(m.total_shots),
        "totalHits": int(m.total_hits),
        "totalMisses": int(m.total_misses),
        "averageReactionTime": round(m.avg_reaction_ms, 2),
        "killsPerSecond": round(m.kills_per_second, 4),
        "consistency": round(m.consistency_pct, 2),
        "streakBest": int(m.streak_best),
        "expiredTargets": int(m.expired_targets),
    }
    if m.flick_distances:
        payload["flickDistance"] = [round(d, 2) for d in m.flick_distances]
    if m.tracking_accuracy_pct is not None:
        payload["trackingAccuracy"] = round(m.tracking_accuracy_pct, 2)
    if m.switch_speeds_ms:
        payload["switchSpeed"] = [round(s, 2) for s in m.switch_speeds_ms]
    if m.hit_positions:
        payload["hitPositions"] = list(m.hit_positions)
    if m.miss_positions:
        payload["missPositions"] = list(m.miss_positions)
    return payload


def validate_result_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Reject payloads whose shot counts do not add up."""
    shots = int(payload.get("totalShots", 0))
    hits = int(payload.get("totalHits", 0))
    misses = int(payload.get("totalMisses", 0))
    if shots != hits + misses:
        raise ValueError(f"totalShots ({shots}) must equal totalHits + totalMisses ({hits} + {misses})")
    return payload


def build_calibration_payload(run: CalibrationRun, user_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "userId": user_id,
        "testType": "circle-tracking",
        "dpi": int(run.dpi),
        "inGameSensitivity": run.sensitivity,
        "inchesPer360": round(run.inches_per_360, 4),
        "accuracyPercentage": round(run.accuracy_pct, 2),
        "reactionTimeMs": round(run.reaction_time_ms, 2),
        "consistencyScore": round(run.consistency_pct, 2),
        "pathEfficiency": round(run.path_efficiency_pct, 2),
        "movementSmoothness": round(run.movement_smoothness_pct, 2),
        "overshootRate": round(run.overshoot_rate, 4),
        "undershootRate": round(run.undershoot_rate, 4),
        "correctionRate": round(run.correction_rate, 4),
        "predictionAccuracy": round(run.prediction_accuracy_pct, 2),
    }


def _json_default(o: Any) -> Any:
    if isinstance(o, np.generic):
        return o.item()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def append_jsonl(path: str | Path, payload: Dict[str, Any]) -> None:
    """Append one JSON object per line, creating parent directories."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a", encoding="utf-8") as f:
        f.write(json.dumps(payload, separators=(",", ":"), default=_json_default))
        f.write("\n")


def read_jsonl(path: str | Path) -> list[Dict[str, Any]]:
    p = Path(path)
    if not p.exists():
        return []
    out = []
    with p.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                out.append(json.loads(line))
    return out


class JsonLinesSink:
    """Appends result and calibration payloads to two NDJSON files."""

    def __init__(self, out_dir: str | Path, *, user_id: Optional[str] = None) -> None:
        self.out_dir = Path(out_dir)
        self.user_id = user_id

    @property
    def results_path(self) -> Path:
        return self.out_dir / "results.ndjson"

    @property
    def calibration_path(self) -> Path:
        return self.out_dir / "calibration_runs.ndjson"

    def submit_result(self, metrics: SessionMetrics) -> None:
        append_jsonl(self.results_path, validate_result_payload(build_result_payload(metrics)))

    def submit_calibration(self, run: CalibrationRun) -> None:
        append_jsonl(self.calibration_path, build_calibration_payload(run, self.user_id))
