from __future__ import annotations

"""Parquet-backed store for training history using pandas + pyarrow.

Three tables live under one data directory:

- training_results.parquet: one row per finished drill session
- shot_events.parquet: one row per click (hit or miss) with positions
- calibration_runs.parquet: one row per tested DPI/sensitivity configuration
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Type

import pandas as pd
import pyarrow  # noqa: F401  (parquet engine)
from pydantic import BaseModel

from .schema import (
    CALIBRATION_DTYPES,
    DIFFICULTIES,
    MODES,
    RESULT_DTYPES,
    SHOT_DTYPES,
    CalibrationRunRow,
    ShotEventRow,
    TrainingResultRow,
)

RESULTS_FILE = "training_results.parquet"
SHOTS_FILE = "shot_events.parquet"
CALIBRATION_FILE = "calibration_runs.parquet"

_TABLES = {
    RESULTS_FILE: RESULT_DTYPES,
    SHOTS_FILE: SHOT_DTYPES,
    CALIBRATION_FILE: CALIBRATION_DTYPES,
}


def _empty_df(dtypes: Dict[str, Any]) -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in dtypes.items()})


def _fix_dtypes(df: pd.DataFrame, dtypes: Dict[str, Any]) -> pd.DataFrame:
    for col, dt in dtypes.items():
        if col not in df.columns:
            df[col] = pd.Series(pd.NA, index=df.index)
        df[col] = df[col].astype(dt)
    return df[list(dtypes.keys())]


def init_store(data_dir: Path) -> None:
    """Ensure data directory and empty Parquet files with correct schema exist."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    for name, dtypes in _TABLES.items():
        path = data_dir / name
        if not path.exists():
            _empty_df(dtypes).to_parquet(path, engine="pyarrow", compression="zstd", index=False)


def _validate(records: Iterable[Any], model: Type[BaseModel], dtypes: Dict[str, Any]) -> pd.DataFrame:
    if not isinstance(records, list):
        raise TypeError(f"records must be a list[{model.__name__}]")
    rows = [r if isinstance(r, model) else model.model_validate(r) for r in records]
    if not rows:
        return _empty_df(dtypes)
    df = pd.DataFrame([r.model_dump() for r in rows])
    return _fix_dtypes(df, dtypes)


def validate_results(records: list[TrainingResultRow]) -> pd.DataFrame:
    """Validate session rows (shots == hits + misses, ranges) and return a typed DataFrame."""
    return _validate(records, TrainingResultRow, RESULT_DTYPES)


def validate_shot_events(records: list[ShotEventRow]) -> pd.DataFrame:
    return _validate(records, ShotEventRow, SHOT_DTYPES)


def validate_calibration_runs(records: list[CalibrationRunRow]) -> pd.DataFrame:
    return _validate(records, CalibrationRunRow, CALIBRATION_DTYPES)


def _append(df_new: pd.DataFrame, data_path: Path, name: str) -> None:
    """Read existing, concatenate, fix dtypes, drop exact duplicates, write back (zstd)."""
    dtypes = _TABLES[name]
    f = Path(data_path) / name
    f.parent.mkdir(parents=True, exist_ok=True)
    if f.exists():
        df_old = _fix_dtypes(pd.read_parquet(f, engine="pyarrow"), dtypes)
    else:
        df_old = _empty_df(dtypes)
    df_new = _fix_dtypes(df_new.copy(), dtypes)
    if df_old.empty:
        combined = df_new
    elif df_new.empty:
        combined = df_old
    else:
        combined = pd.concat([df_old, df_new], ignore_index=True)
    combined = _fix_dtypes(combined, dtypes).drop_duplicates().reset_index(drop=True)
    combined.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def append_training_results(df_new: pd.DataFrame, data_path: Path) -> None:
    _append(df_new, data_path, RESULTS_FILE)


def append_shot_events(df_new: pd.DataFrame, data_path: Path) -> None:
    _append(df_new, data_path, SHOTS_FILE)


def append_calibration_runs(df_new: pd.DataFrame, data_path: Path) -> None:
    _append(df_new, data_path, CALIBRATION_FILE)


def _load(data_path: Path, name: str) -> pd.DataFrame:
    dtypes = _TABLES[name]
    f = Path(data_path) / name
    if not f.exists():
        return _empty_df(dtypes)
    return _fix_dtypes(pd.read_parquet(f, engine="pyarrow"), dtypes)


def load_training_results(data_path: Path, *, user_id: Optional[str] = None) -> pd.DataFrame:
    """Load session rows sorted by start time and add `acc` (hits / shots as float32)."""
    df = _load(data_path, RESULTS_FILE)
    if user_id is not None:
        df = df[df["user_id"] == user_id]
    df = df.sort_values(["session_start", "session_id"], kind="stable").reset_index(drop=True)
    shots = df["total_shots"].astype("float32").where(df["total_shots"] > 0, other=1.0)
    df["acc"] = (df["total_hits"].astype("float32") / shots).astype("float32")
    return df


def load_shot_events(data_path: Path, *, session_id: Optional[str] = None) -> pd.DataFrame:
    df = _load(data_path, SHOTS_FILE)
    if session_id is not None:
        df = df[df["session_id"] == session_id]
    return df.sort_values(["session_start", "session_id", "seq"], kind="stable").reset_index(drop=True)


def load_calibration_runs(data_path: Path, *, user_id: Optional[str] = None) -> pd.DataFrame:
    df = _load(data_path, CALIBRATION_FILE)
    if user_id is not None:
        df = df[df["user_id"] == user_id]
    return df.sort_values("created_at", kind="stable").reset_index(drop=True)


def query_trend(df: pd.DataFrame, *, mode: str, difficulty: Optional[str] = None) -> pd.DataFrame:
    """Filter session rows for a mode (and optionally difficulty) sorted by session_start."""
    if mode not in MODES:
        raise ValueError(f"Unknown mode: {mode}")
    mask = df["mode"].astype("string") == mode
    if difficulty is not None:
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty}")
        mask &= df["difficulty"].astype("string") == difficulty
    return df[mask].sort_values("session_start").reset_index(drop=True)


def personal_bests(df: pd.DataFrame) -> pd.DataFrame:
    """Best score, accuracy, reaction and streak per (mode, difficulty)."""
    cols = ["mode", "difficulty", "sessions", "best_score", "best_accuracy", "best_reaction_ms", "best_streak"]
    if df.empty:
        return pd.DataFrame(columns=cols)
    g = df.copy()
    # Sessions without hits have no meaningful reaction time
    g["reaction_for_best"] = g["avg_reaction_ms"].where(g["total_hits"] > 0)
    out = (
        g.groupby(["mode", "difficulty"], observed=True)
        .agg(
            sessions=("session_id", "count"),
            best_score=("score", "max"),
            best_accuracy=("accuracy", "max"),
            best_reaction_ms=("reaction_for_best", "min"),
            best_streak=("streak_best", "max"),
        )
        .reset_index()
    )
    return out[cols]


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    """Export a DataFrame to line-delimited JSON (NDJSON) for quick inspection."""
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out_path, orient="records", lines=True, date_format="iso")


def export_csv(df: pd.DataFrame, out_path: Path) -> None:
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)
