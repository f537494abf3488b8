from __future__ import annotations

"""Orbit: the calibration target circling the canvas centre at constant angular speed."""

import math
from typing import List

from .base_director import BaseDirector, HitOutcome, Target


class OrbitDirector(BaseDirector):
    mode = "calibration"
    clickable = False

    def __init__(self, canvas, params, rng) -> None:
        super().__init__(canvas, params, rng)
        self.orbit_radius = float(self.params.get("orbitRadius", 150))
        self.angular_speed = float(self.params.get("angularSpeed", 0.02))
        self.angle = 0.0

    def spawn_initial(self, now_ms: float) -> None:
        self.targets = []
        self.angle = 0.0
        x, y = self._position()
        self._make_target(x, y, now_ms)

    def on_tick(self, now_ms: float) -> List[Target]:
        if not self.targets:
            self.spawn_initial(now_ms)
            return []
        t = self.targets[0]
        prev_x, prev_y = t.x, t.y
        self.angle += self.angular_speed
        t.x, t.y = self._position()
        # Velocity in px per tick, read by the prediction analysis
        t.vx, t.vy = t.x - prev_x, t.y - prev_y
        return []

    def on_hit(self, target_id: int, now_ms: float) -> HitOutcome:
        return HitOutcome()

    def _position(self):
        cx, cy = self.canvas.center
        return (cx + math.cos(self.angle) * self.orbit_radius, cy + math.sin(self.angle) * self.orbit_radius)
