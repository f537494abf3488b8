from __future__ import annotations

"""Analytics configuration (hyperparameters) using Pydantic."""

from typing import Dict
from pydantic import BaseModel, Field


class AnalyticsConfig(BaseModel):
    """Hyperparameters for analytics computations, smoothing and insights.

    - alpha: reaction-time penalty scale (>0)
    - T_ref_ms: reference reaction time in ms (>0)
    - score_weights: weights of the combined score (accuracy, reaction, consistency)
    - smoothing_span: EWMA span in sessions (>1)
    - min_sessions: sessions required before insights/recommendations unlock
    - trend_window: sessions compared at each end of the history
    - trend_threshold_pct: relative score change that counts as a trend
    - accuracy_floor: accuracy (%) below which accuracy work is recommended
    - regression_ratio: recent average below this share of the best score flags a slump
    """

    alpha: float = Field(0.7, gt=0)
    T_ref_ms: int = Field(1000, gt=0)
    score_weights: Dict[str, float] = Field(
        default_factory=lambda: {"accuracy": 0.4, "reaction": 0.3, "consistency": 0.3}
    )
    smoothing_span: int = Field(5, gt=1)
    min_sessions: int = Field(5, ge=1)
    trend_window: int = Field(10, ge=1)
    trend_threshold_pct: float = Field(5.0, ge=0)
    accuracy_floor: float = Field(70.0, ge=0, le=100)
    regression_ratio: float = Field(0.8, gt=0, le=1)
