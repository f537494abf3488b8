from __future__ import annotations

"""Load stored training results and compute derived metrics."""

from pathlib import Path
from typing import Optional

import pandas as pd

from storage.store import load_training_results

from .config import AnalyticsConfig
from .metrics import compute_metrics


def load_and_prepare(data_dir: Path, cfg: AnalyticsConfig, *, user_id: Optional[str] = None) -> pd.DataFrame:
    """Read the training_results table and compute metrics with consistent dtypes.

    - Rows come back sorted by (session_start, session_id).
    - Adds a stable chronological index 'session_idx' and an hour-of-day column.
    """
    df = load_training_results(Path(data_dir), user_id=user_id)
    return prepare_frame(df, cfg)


def prepare_frame(df: pd.DataFrame, cfg: AnalyticsConfig) -> pd.DataFrame:
    df = df.sort_values(["session_start", "session_id"], kind="stable").reset_index(drop=True)
    df = compute_metrics(df, cfg)
    df["session_idx"] = pd.factorize(df["session_id"])[0]
    df["hour"] = df["session_start"].dt.hour.astype("Int8")
    return df
