from __future__ import annotations

"""Schema constants and Pydantic models for Parquet-backed training history."""

from datetime import datetime, timezone
from typing import Literal, Optional

import pandas as pd
from pandas.api.types import CategoricalDtype
from pydantic import BaseModel, Field, field_validator, model_validator

# --- Constants ---

MODES = {"gridshot", "flick", "track", "switch", "calibration"}
DIFFICULTIES = {"easy", "medium", "hard", "extreme"}
SHOT_KINDS = {"hit", "miss"}


def _cat_dtype(categories: set[str]) -> CategoricalDtype:
    return CategoricalDtype(categories=sorted(categories), ordered=False)


_UTC = pd.DatetimeTZDtype(tz="UTC")

RESULT_DTYPES = {
    "session_id": "string",
    "user_id": "string",
    # timezone-aware UTC timestamps
    "session_start": _UTC,
    "mode": _cat_dtype(MODES),
    "difficulty": _cat_dtype(DIFFICULTIES),
    "duration_s": "float32",
    "target_size": "float32",
    "score": "Int64",
    "accuracy": "float32",
    "total_shots": "UInt32",
    "total_hits": "UInt32",
    "total_misses": "UInt32",
    "expired_targets": "UInt32",
    "avg_reaction_ms": "float32",
    "kills_per_second": "float32",
    "consistency": "float32",
    "streak_best": "UInt32",
    "tracking_accuracy": "Float32",
    "avg_flick_distance": "Float32",
    "avg_switch_ms": "Float32",
}

SHOT_DTYPES = {
    "session_id": "string",
    "session_start": _UTC,
    "mode": _cat_dtype(MODES),
    "seq": "UInt32",
    "kind": _cat_dtype(SHOT_KINDS),
    "t_ms": "float32",
    "x": "float32",
    "y": "float32",
    "target_x": "Float32",
    "target_y": "Float32",
    "reaction_ms": "Float32",
    "nearest_distance": "Float32",
    "flick_distance": "Float32",
    "switch_ms": "Float32",
    "points": "Int32",
}

CALIBRATION_DTYPES = {
    "sweep_id": "string",
    "user_id": "string",
    "created_at": _UTC,
    "dpi": "UInt32",
    "sensitivity": "float32",
    "cm_per_360": "float32",
    "accuracy_pct": "float32",
    "consistency_pct": "float32",
    "reaction_time_ms": "float32",
    "path_efficiency_pct": "float32",
    "movement_smoothness_pct": "float32",
    "overshoot_rate": "float32",
    "undershoot_rate": "float32",
    "correction_rate": "float32",
    "prediction_accuracy_pct": "float32",
}


def _utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


# --- Pydantic models ---

class TrainingResultRow(BaseModel):
    session_id: str
    user_id: str = "local"
    session_start: datetime
    mode: Literal[tuple(MODES)]  # type: ignore[valid-type]
    difficulty: Literal[tuple(DIFFICULTIES)]  # type: ignore[valid-type]
    duration_s: float = Field(gt=0)
    target_size: float = Field(gt=0)
    score: int
    accuracy: float = Field(ge=0, le=100)
    total_shots: int = Field(ge=0)
    total_hits: int = Field(ge=0)
    total_misses: int = Field(ge=0)
    expired_targets: int = Field(default=0, ge=0)
    avg_reaction_ms: float = Field(ge=0)
    kills_per_second: float = Field(ge=0)
    consistency: float = Field(ge=0, le=100)
    streak_best: int = Field(ge=0)
    tracking_accuracy: Optional[float] = Field(default=None, ge=0, le=100)
    avg_flick_distance: Optional[float] = Field(default=None, ge=0)
    avg_switch_ms: Optional[float] = Field(default=None, ge=0)

    @field_validator("session_start")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _utc(v)

    @model_validator(mode="after")
    def _shots_add_up(self) -> "TrainingResultRow":
        if self.total_shots != self.total_hits + self.total_misses:
            raise ValueError("total_shots must equal total_hits + total_misses")
        if self.streak_best > self.total_hits:
            raise ValueError("streak_best cannot exceed total_hits")
        return self


class ShotEventRow(BaseModel):
    session_id: str
    session_start: datetime
    mode: Literal[tuple(MODES)]  # type: ignore[valid-type]
    seq: int = Field(ge=0)
    kind: Literal[tuple(SHOT_KINDS)]  # type: ignore[valid-type]
    t_ms: float = Field(ge=0)
    x: float
    y: float
    target_x: Optional[float] = None
    target_y: Optional[float] = None
    reaction_ms: Optional[float] = Field(default=None, ge=0)
    nearest_distance: Optional[float] = Field(default=None, ge=0)
    flick_distance: Optional[float] = Field(default=None, ge=0)
    switch_ms: Optional[float] = Field(default=None, ge=0)
    points: int = 0

    @field_validator("session_start")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _utc(v)

    @model_validator(mode="after")
    def _hit_has_reaction(self) -> "ShotEventRow":
        if self.kind == "hit" and self.reaction_ms is None:
            raise ValueError("hit rows require reaction_ms")
        return self


class CalibrationRunRow(BaseModel):
    sweep_id: str
    user_id: str = "local"
    created_at: datetime
    dpi: int = Field(gt=0)
    sensitivity: float = Field(gt=0)
    cm_per_360: float = Field(gt=0)
    accuracy_pct: float = Field(ge=0, le=100)
    consistency_pct: float = Field(ge=0, le=100)
    reaction_time_ms: float = Field(ge=0)
    path_efficiency_pct: float = Field(default=0, ge=0, le=100)
    movement_smoothness_pct: float = Field(default=0, ge=0, le=100)
    overshoot_rate: float = Field(default=0, ge=0)
    undershoot_rate: float = Field(default=0, ge=0)
    correction_rate: float = Field(default=0, ge=0)
    prediction_accuracy_pct: float = Field(default=50, ge=0, le=100)

    @field_validator("created_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _utc(v)
