from __future__ import annotations

"""Gridshot: static, randomly placed, time-limited targets."""

from typing import List

from .base_director import BaseDirector, HitOutcome, Target


class GridshotDirector(BaseDirector):
    mode = "gridshot"

    def __init__(self, canvas, params, rng) -> None:
        super().__init__(canvas, params, rng)
        self.spawn_rate = float(self.params.get("spawnRate", 600))
        self.lifetime = float(self.params.get("targetLifetime", 2000))
        self.max_targets = max(1, int(self.params.get("maxTargets", 4)))
        self._last_spawn = 0.0

    def spawn_initial(self, now_ms: float) -> None:
        self._spawn(now_ms)

    def on_tick(self, now_ms: float) -> List[Target]:
        expired = self._retire_expired(now_ms)
        if not self.targets:
            self._spawn(now_ms)
        elif len(self.targets) < self.max_targets and now_ms - self._last_spawn >= self.spawn_rate:
            self._spawn(now_ms)
        return expired

    def on_hit(self, target_id: int, now_ms: float) -> HitOutcome:
        self._remove(target_id)
        if not self.targets:
            self._spawn(now_ms)
        return HitOutcome()

    def _spawn(self, now_ms: float) -> Target:
        x, y = self._random_position(self.size / 2.0)
        self._last_spawn = now_ms
        return self._make_target(x, y, now_ms, lifetime_ms=self.lifetime)
