from __future__ import annotations

"""Flick: one far-away target at a time to force large cursor traversals."""

import math
from typing import List, Tuple

from ..util.geometry import distance
from .base_director import BaseDirector, HitOutcome, Target

PLACEMENT_ATTEMPTS = 10


class FlickDirector(BaseDirector):
    mode = "flick"

    def __init__(self, canvas, params, rng) -> None:
        super().__init__(canvas, params, rng)
        self.min_distance = float(self.params.get("minDistance", 400))
        self.lifetime = float(self.params.get("targetLifetime", 3000))
        self._anchor: Tuple[float, float] = canvas.center

    def spawn_initial(self, now_ms: float) -> None:
        self._anchor = self.canvas.center
        self._spawn(now_ms)

    def on_tick(self, now_ms: float) -> List[Target]:
        expired = self._retire_expired(now_ms)
        if not self.targets:
            self._spawn(now_ms)
        return expired

    def on_hit(self, target_id: int, now_ms: float) -> HitOutcome:
        t = self._remove(target_id)
        self._spawn(now_ms)
        travel = t.flick_distance if t is not None and t.flick_distance is not None else 0.0
        return HitOutcome(bonus=int(math.floor(travel / 10.0)), flick_distance=travel)

    def _place(self) -> Tuple[float, float]:
        ax, ay = self._anchor
        pos = self._random_position(self.size)
        for _ in range(PLACEMENT_ATTEMPTS - 1):
            if distance(ax, ay, pos[0], pos[1]) >= self.min_distance:
                return pos
            pos = self._random_position(self.size)
        # Exhausted: keep the last candidate, unconstrained
        return pos

    def _spawn(self, now_ms: float) -> Target:
        x, y = self._place()
        ax, ay = self._anchor
        t = self._make_target(x, y, now_ms, lifetime_ms=self.lifetime, flick_distance=distance(ax, ay, x, y))
        self._anchor = (x, y)
        return t
