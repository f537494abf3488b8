from __future__ import annotations

"""Cross-session insights, rank tiers, recommendations and shot heatmaps."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import AnalyticsConfig

# (name, min accuracy %, max avg reaction ms, percentile)
RANK_TIERS = (
    ("Pro Level", 90.0, 300.0, 95),
    ("Advanced", 80.0, 400.0, 80),
    ("Intermediate", 70.0, 500.0, 60),
)
IMPROVING = ("Improving", 60.0, 40)
BEGINNER = ("Beginner", 10)


@dataclass(frozen=True)
class RankTier:
    name: str
    percentile: int


@dataclass(frozen=True)
class Insight:
    type: str
    title: str
    description: str
    value: float
    severity: str  # positive | neutral | negative


def performance_rank(accuracy: float, avg_reaction_ms: float) -> RankTier:
    for name, min_acc, max_rt, pct in RANK_TIERS:
        if accuracy >= min_acc and avg_reaction_ms <= max_rt:
            return RankTier(name, pct)
    if accuracy >= IMPROVING[1]:
        return RankTier(IMPROVING[0], IMPROVING[2])
    return RankTier(*BEGINNER)


def _score_consistency(scores: np.ndarray) -> float:
    mean = float(scores.mean()) if scores.size else 0.0
    if scores.size < 2 or mean <= 0:
        return 0.0
    return max(0.0, 100.0 - float(scores.std()) / mean * 100.0)


def _trend(df: pd.DataFrame, cfg: AnalyticsConfig) -> Optional[Insight]:
    n, w = len(df), cfg.trend_window
    recent = df.tail(w)
    earlier = df.iloc[max(0, n - 2 * w) : max(0, n - w)]
    if earlier.empty:
        return None
    earlier_avg = float(earlier["score"].astype("float64").mean())
    recent_avg = float(recent["score"].astype("float64").mean())
    if earlier_avg <= 0:
        return None
    change = (recent_avg - earlier_avg) / earlier_avg * 100.0
    t = cfg.trend_threshold_pct
    if change > t:
        title, severity = "Strong Improvement Trend", "positive"
    elif change < -t:
        title, severity = "Performance Decline", "negative"
    else:
        title, severity = "Stable Performance", "neutral"
    direction = "higher" if change > 0 else "lower"
    return Insight("trend", title, f"Your recent scores are {abs(change):.1f}% {direction} than earlier sessions.", change, severity)


def _consistency(df: pd.DataFrame) -> Insight:
    c = _score_consistency(df["score"].astype("float64").to_numpy())
    if c > 80:
        title, severity, tail = "Excellent Consistency", "positive", "You keep very stable performance across sessions."
    elif c > 60:
        title, severity, tail = "Good Consistency", "neutral", "Focus on keeping steady performance between sessions."
    else:
        title, severity, tail = "Room for Consistency Improvement", "negative", "Focus on keeping steady performance between sessions."
    return Insight("consistency", title, f"Your session-to-session consistency is {c:.1f}%. {tail}", c, severity)


def _best_hour(df: pd.DataFrame) -> Optional[Insight]:
    if "hour" not in df.columns:
        return None
    by_hour = df.groupby("hour", observed=True)["score"].agg(["mean", "count"])
    by_hour = by_hour[by_hour["count"] >= 2]
    if by_hour.empty:
        return None
    hour = int(by_hour["mean"].astype("float64").idxmax())
    avg = float(by_hour.loc[hour, "mean"])
    return Insight("timing", "Optimal Performance Time", f"You perform best around {hour}:00 UTC with an average score of {avg:.0f}.", hour, "neutral")


def _accuracy_speed(df: pd.DataFrame) -> Optional[Insight]:
    acc = df["accuracy"].astype("float64")
    high = df[acc > 85]
    low = df[acc < 70]
    if high.empty or low.empty:
        return None
    high_rt = float(high["avg_reaction_ms"].astype("float64").mean())
    low_rt = float(low["avg_reaction_ms"].astype("float64").mean())
    if high_rt <= low_rt * 1.2:
        return None
    return Insight(
        "accuracy_speed",
        "Speed vs Accuracy Trade-off",
        "You hit more when you take more time. Look for the balance between speed and precision.",
        high_rt - low_rt,
        "neutral",
    )


def generate_insights(df: pd.DataFrame, cfg: AnalyticsConfig) -> List[Insight]:
    """Insights over chronologically sorted sessions; empty below cfg.min_sessions."""
    if len(df) < cfg.min_sessions:
        return []
    df = df.sort_values("session_start", kind="stable")
    out: List[Insight] = []
    for item in (_trend(df, cfg), _consistency(df), _best_hour(df), _accuracy_speed(df)):
        if item is not None:
            out.append(item)
    return out


def recommendations(df: pd.DataFrame, cfg: AnalyticsConfig, *, recent_n: int = 20) -> List[Dict[str, str]]:
    """Actionable training suggestions from the stored history."""
    if len(df) < cfg.min_sessions:
        return [
            {
                "type": "getting_started",
                "title": "Complete More Sessions",
                "description": f"Complete at least {cfg.min_sessions} sessions to unlock personalized recommendations.",
                "priority": "high",
                "action": "Start training now",
            }
        ]
    recs: List[Dict[str, str]] = []
    df = df.sort_values("session_start", kind="stable")
    if float(df["accuracy"].astype("float64").mean()) < cfg.accuracy_floor:
        recs.append(
            {
                "type": "accuracy",
                "title": "Focus on Accuracy",
                "description": f"Your accuracy is below {cfg.accuracy_floor:.0f}%. Try a lower sensitivity or slower, deliberate movements.",
                "priority": "high",
                "action": "Practice gridshot on easy difficulty",
            }
        )
    recent = df.tail(recent_n)
    best = float(df["score"].astype("float64").max())
    if float(recent["score"].astype("float64").mean()) < best * cfg.regression_ratio:
        recs.append(
            {
                "type": "consistency",
                "title": "Improve Consistency",
                "description": "Your recent scores are well below your best. Focus on repeatable performance.",
                "priority": "medium",
                "action": "Warm up before each session",
            }
        )
    by_mode = recent.groupby(recent["mode"].astype("string"))["score"].mean()
    if len(by_mode) > 1:
        weakest = str(by_mode.astype("float64").idxmin())
        recs.append(
            {
                "type": "skill_area",
                "title": f"Improve {weakest} Performance",
                "description": f"Your {weakest} scores are lower than your other drills.",
                "priority": "medium",
                "action": f"Practice {weakest} sessions",
            }
        )
    return recs


def training_stats(df: pd.DataFrame) -> pd.DataFrame:
    """Per-mode session count, averages and best score."""
    cols = ["mode", "sessions", "avg_score", "avg_accuracy", "avg_reaction_ms", "best_score"]
    if df.empty:
        return pd.DataFrame(columns=cols)
    out = (
        df.groupby("mode", observed=True)
        .agg(
            sessions=("session_id", "count"),
            avg_score=("score", "mean"),
            avg_accuracy=("accuracy", "mean"),
            avg_reaction_ms=("avg_reaction_ms", "mean"),
            best_score=("score", "max"),
        )
        .reset_index()
    )
    return out[cols]


def aggregate_heatmap(
    shots: pd.DataFrame,
    *,
    canvas: Tuple[float, float] = (1280.0, 720.0),
    bins: Tuple[int, int] = (32, 18),
    mode: Optional[str] = None,
) -> Dict[str, Any]:
    """2D histograms of hit and miss click positions over the canvas."""
    g = shots
    if mode is not None:
        g = g[g["mode"].astype("string") == mode]
    kind = g["kind"].astype("string")
    rng = [[0.0, float(canvas[0])], [0.0, float(canvas[1])]]

    def _hist(sel: pd.DataFrame) -> np.ndarray:
        if sel.empty:
            return np.zeros(bins, dtype=int)
        h, _, _ = np.histogram2d(sel["x"].astype("float64"), sel["y"].astype("float64"), bins=bins, range=rng)
        return h.astype(int)

    hits = g[kind == "hit"]
    misses = g[kind == "miss"]
    return {
        "hits": _hist(hits),
        "misses": _hist(misses),
        "total_hits": int(len(hits)),
        "total_misses": int(len(misses)),
        "sessions": int(g["session_id"].nunique()) if not g.empty else 0,
        "extent": (0.0, float(canvas[0]), 0.0, float(canvas[1])),
    }
