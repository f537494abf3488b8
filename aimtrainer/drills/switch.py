from __future__ import annotations

"""Switch: several visible targets, exactly one active (clickable) at a time."""

import math
from typing import List, Optional

from ..util.geometry import distance
from .base_director import BaseDirector, HitOutcome, Target

PLACEMENT_ATTEMPTS = 20
SWITCH_BONUS_MAX = 50


class SwitchDirector(BaseDirector):
    mode = "switch"

    def __init__(self, canvas, params, rng) -> None:
        super().__init__(canvas, params, rng)
        self.switch_rate = float(self.params.get("switchRate", 1200))
        self.total_targets = max(1, int(self.params.get("totalTargets", 5)))
        self.max_distance = float(self.params.get("maxDistance", 400))
        self.active_index = 0
        self.last_switch = 0.0

    def spawn_initial(self, now_ms: float) -> None:
        self.targets = []
        separation = self.max_distance * 0.3
        for i in range(self.total_targets):
            x, y = self._random_position(self.size)
            for _ in range(PLACEMENT_ATTEMPTS - 1):
                if all(distance(x, y, t.x, t.y) >= separation for t in self.targets):
                    break
                x, y = self._random_position(self.size)
            self._make_target(x, y, now_ms, index=i)
        self.active_index = 0
        self._activate(0, now_ms)

    def on_tick(self, now_ms: float) -> List[Target]:
        if now_ms - self.last_switch > self.switch_rate:
            self.switch_to_next(now_ms)
        return []

    def on_hit(self, target_id: int, now_ms: float) -> HitOutcome:
        t = self.active
        if t is None or t.id != target_id:
            return HitOutcome()
        switch_ms = now_ms - (t.activated_at if t.activated_at is not None else t.spawned_at)
        bonus = max(0, SWITCH_BONUS_MAX - int(math.floor(switch_ms / 10.0)))
        self.switch_to_next(now_ms)
        return HitOutcome(bonus=bonus, switch_ms=switch_ms)

    @property
    def active(self) -> Optional[Target]:
        if not self.targets:
            return None
        return self.targets[self.active_index]

    def eligible(self) -> List[Target]:
        t = self.active
        return [t] if t is not None else []

    def focus(self) -> Optional[Target]:
        return self.active

    def switch_to_next(self, now_ms: float) -> None:
        """Advance the active index circularly; exactly one target stays active."""
        if not self.targets:
            return
        self.targets[self.active_index].active = False
        self.active_index = (self.active_index + 1) % len(self.targets)
        self._activate(self.active_index, now_ms)

    def _activate(self, index: int, now_ms: float) -> None:
        t = self.targets[index]
        t.active = True
        t.activated_at = now_ms
        self.last_switch = now_ms
