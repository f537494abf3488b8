from .config import AnalyticsConfig
from .metrics import compute_metrics
from .prepare import load_and_prepare, prepare_frame
from .smoothing import ewma_by_session
from .insights import (
    Insight,
    RankTier,
    aggregate_heatmap,
    generate_insights,
    performance_rank,
    recommendations,
    training_stats,
)
from .plots import plot_trend, plot_session_radar, plot_hit_heatmap, plot_calibration, radar_values

__all__ = [
    "AnalyticsConfig",
    "compute_metrics",
    "load_and_prepare",
    "prepare_frame",
    "ewma_by_session",
    "Insight",
    "RankTier",
    "aggregate_heatmap",
    "generate_insights",
    "performance_rank",
    "recommendations",
    "training_stats",
    "plot_trend",
    "plot_session_radar",
    "plot_hit_heatmap",
    "plot_calibration",
    "radar_values",
]
