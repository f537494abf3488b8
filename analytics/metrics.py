from __future__ import annotations

"""Metric computations for per-session analytics."""

import numpy as np
import pandas as pd
from .config import AnalyticsConfig


def compute_metrics(df: pd.DataFrame, cfg: AnalyticsConfig) -> pd.DataFrame:
    """Compute accuracy fraction, reaction factor, combined score and composite mark.

    Returns a copy with added columns:
    - acc, reaction_score, combined_score, rt_factor, mark
    """
    out = df.copy()
    # total_shots can be 0 for a track session with no clicks
    shots = out["total_shots"].astype("float32").where(out["total_shots"] > 0, other=1.0)
    out["acc"] = (out["total_hits"].astype("float32") / shots).astype("float32")

    rt = out["avg_reaction_ms"].astype("float32").clip(lower=0)
    out["reaction_score"] = ((1000.0 - rt.clip(upper=1000.0)) / 1000.0 * 100.0).astype("float32")

    w = cfg.score_weights
    out["combined_score"] = (
        out["accuracy"].astype("float32") * float(w.get("accuracy", 0.0))
        + out["reaction_score"] * float(w.get("reaction", 0.0))
        + out["consistency"].astype("float32") * float(w.get("consistency", 0.0))
    ).astype("float32")

    # Reaction time factor: exp(-alpha * rt/T_ref); sessions without hits get no credit
    factor = np.exp(-float(cfg.alpha) * (rt / float(cfg.T_ref_ms)))
    out["rt_factor"] = factor.where(out["total_hits"] > 0, other=0.0).astype("float32")

    # Track sessions are scored on dwell time rather than clicks
    base = out["acc"].copy()
    if "tracking_accuracy" in out.columns:
        track = out["mode"].astype("string") == "track"
        dwell = (out["tracking_accuracy"].astype("Float32") / 100.0).fillna(0.0).astype("float32")
        base = base.where(~track, other=dwell)
        out.loc[track, "rt_factor"] = np.float32(1.0)
    out["mark"] = (base * out["rt_factor"]).clip(0, 1).astype("float32")
    return out
