from __future__ import annotations

"""Input/hit resolver: maps a click to a hit or a miss against the live targets."""

import math
from dataclasses import dataclass
from typing import Optional

from ..drills.base_director import BaseDirector, Target
from ..stats.stats import MetricsAggregator

CLICK_POLICIES = ("miss", "ignore")


@dataclass(frozen=True)
class ClickResult:
    counted: bool
    hit: bool = False
    target_id: Optional[int] = None
    points: int = 0
    reaction_ms: Optional[float] = None
    nearest_distance: Optional[float] = None


class HitResolver:
    def __init__(
        self,
        director: BaseDirector,
        aggregator: MetricsAggregator,
        *,
        base_points: int = 100,
        bonus_window_ms: float = 500.0,
        bonus_per_ms: float = 0.1,
        track_click_policy: str = "miss",
    ) -> None:
        self.director = director
        self.aggregator = aggregator
        self.base_points = int(base_points)
        self.bonus_window_ms = float(bonus_window_ms)
        self.bonus_per_ms = float(bonus_per_ms)
        if track_click_policy not in CLICK_POLICIES:
            raise ValueError(f"Unknown track click policy: {track_click_policy}")
        self.track_click_policy = track_click_policy

    def reaction_bonus(self, reaction_ms: float) -> int:
        return int(math.floor(max(0.0, self.bonus_window_ms - reaction_ms) * self.bonus_per_ms))

    def on_click(self, x: float, y: float, t_ms: float) -> ClickResult:
        if not self.director.clickable:
            if self.track_click_policy == "ignore":
                return ClickResult(counted=False)
            return self._miss(x, y, t_ms)

        for target in self.director.eligible():
            if target.contains(x, y):
                return self._hit(target, x, y, t_ms)
        return self._miss(x, y, t_ms)

    def _hit(self, target: Target, x: float, y: float, t_ms: float) -> ClickResult:
        started = target.activated_at if target.activated_at is not None else target.spawned_at
        reaction = max(0.0, t_ms - started)
        tx, ty = target.x, target.y
        outcome = self.director.on_hit(target.id, t_ms)
        points = self.base_points + self.reaction_bonus(reaction) + int(outcome.bonus)
        self.aggregator.record_hit(
            t_ms,
            x,
            y,
            target_x=tx,
            target_y=ty,
            reaction_ms=reaction,
            points=points,
            flick_distance=outcome.flick_distance,
            switch_ms=outcome.switch_ms,
        )
        return ClickResult(counted=True, hit=True, target_id=target.id, points=points, reaction_ms=reaction)

    def _miss(self, x: float, y: float, t_ms: float) -> ClickResult:
        nearest = self.director.nearest(x, y)
        dist = nearest[1] if nearest is not None else None
        self.aggregator.record_miss(t_ms, x, y, dist)
        return ClickResult(counted=True, hit=False, nearest_distance=dist)
