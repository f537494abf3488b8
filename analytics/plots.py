from __future__ import annotations

"""Matplotlib plots for score trends, session radar, click heatmaps and calibration sweeps."""

from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

RADAR_LABELS = ["Accuracy", "Speed", "Reaction", "Consistency", "Score"]


def radar_values(row: Dict[str, Any] | pd.Series) -> list[float]:
    """Normalize one session to [0, 1] per radar axis."""
    return [
        min(1.0, max(0.0, float(row["accuracy"]) / 100.0)),
        min(1.0, max(0.0, float(row["kills_per_second"]) / 3.0)),
        max(0.0, 1.0 - float(row["avg_reaction_ms"]) / 1000.0),
        min(1.0, max(0.0, float(row["consistency"]) / 100.0)),
        min(1.0, max(0.0, float(row["score"]) / 5000.0)),
    ]


def plot_trend(
    df: pd.DataFrame,
    *,
    mode: Optional[str] = None,
    difficulty: Optional[str] = None,
    value_col: str = "score",
    save_path: Optional[str | bytes | "os.PathLike[str]"] = None,
) -> None:
    g = df.copy()
    if mode is not None:
        g = g[g["mode"].astype("string") == mode]
    if difficulty is not None:
        g = g[g["difficulty"].astype("string") == difficulty]
    if g.empty:
        return
    g = g.sort_values("session_idx")
    plt.figure()
    plt.plot(g["session_idx"], g[value_col].astype("float64"), marker="o", linestyle="", label=value_col)
    smooth_col = f"{value_col}_smooth"
    if smooth_col in g.columns:
        plt.plot(g["session_idx"], g[smooth_col], linewidth=2, label=f"{value_col} (EWMA)")
    plt.xlabel("Session")
    plt.ylabel(value_col)
    bits = [b for b in [mode, difficulty] if b]
    plt.title("Trend: " + ", ".join(bits) if bits else "Trend")
    plt.legend()
    if save_path:
        plt.savefig(save_path, bbox_inches="tight", dpi=150)
    plt.close()


def plot_session_radar(
    rows: pd.DataFrame,
    *,
    label_col: str = "mode",
    save_path: Optional[str | bytes | "os.PathLike[str]"] = None,
) -> None:
    """One polygon per session row (e.g. the latest session of each mode)."""
    if rows.empty:
        return
    angles = np.linspace(0, 2 * np.pi, len(RADAR_LABELS), endpoint=False)
    angles = np.concatenate([angles, angles[:1]])

    fig = plt.figure()
    ax = fig.add_subplot(111, polar=True)
    for _, row in rows.iterrows():
        vals = np.array(radar_values(row))
        vals = np.concatenate([vals, vals[:1]])
        ax.plot(angles, vals, label=str(row[label_col]) if label_col in row else None)
        ax.fill(angles, vals, alpha=0.1)
    ax.set_xticks(angles[:-1])
    ax.set_xticklabels(RADAR_LABELS)
    ax.set_ylim(0, 1)
    ax.set_title("Session Profile")
    if label_col in rows.columns:
        ax.legend(loc="upper right", bbox_to_anchor=(1.3, 1.1))
    if save_path:
        plt.savefig(save_path, bbox_inches="tight", dpi=150)
    plt.close()


def plot_hit_heatmap(
    heat: Dict[str, Any],
    *,
    layer: str = "hits",
    save_path: Optional[str | bytes | "os.PathLike[str]"] = None,
) -> None:
    """Render one layer ('hits' or 'misses') of aggregate_heatmap output."""
    M = np.asarray(heat.get(layer))
    if M.size == 0 or not M.any():
        return
    x0, x1, y0, y1 = heat["extent"]
    plt.figure()
    # histogram2d is indexed [x, y]; screen y grows downward
    im = plt.imshow(M.T, aspect="auto", origin="upper", extent=(x0, x1, y1, y0))
    plt.colorbar(im, label=f"{layer} count")
    plt.title(f"Click Heatmap ({layer}, {heat.get('sessions', 0)} sessions)")
    plt.xlabel("x (px)")
    plt.ylabel("y (px)")
    if save_path:
        plt.savefig(save_path, bbox_inches="tight", dpi=150)
    plt.close()


def plot_calibration(
    runs: pd.DataFrame,
    *,
    scores: Optional[Sequence[float]] = None,
    optimal_range: Optional[tuple[float, float]] = None,
    save_path: Optional[str | bytes | "os.PathLike[str]"] = None,
) -> None:
    """Scatter cm/360 against the combined score (or accuracy when no scores are given)."""
    if runs.empty:
        return
    x = runs["cm_per_360"].astype("float64")
    y = pd.Series(list(scores), index=runs.index) if scores is not None else runs["accuracy_pct"].astype("float64")
    plt.figure()
    plt.scatter(x, y, alpha=0.6)
    if optimal_range is not None:
        plt.axvspan(optimal_range[0], optimal_range[1], alpha=0.1, label="optimal range")
        plt.legend()
    plt.xlabel("cm/360")
    plt.ylabel("Combined score" if scores is not None else "Accuracy (%)")
    plt.title("Calibration Sweep")
    if save_path:
        plt.savefig(save_path, bbox_inches="tight", dpi=150)
    plt.close()
