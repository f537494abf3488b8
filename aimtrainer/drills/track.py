from __future__ import annotations

"""Track: one continuously moving target that bounces off the canvas edges.

Velocity is in px per tick. The motion profile perturbs velocity every tick:

- linear: constant velocity
- curved: sinusoidal acceleration keyed to seconds since spawn
- erratic: random impulse with 2% probability per tick
- chaotic: continuous random impulse, speed clamped to the preset `speed`
"""

import math
from typing import List

from ..util.geometry import clamp
from .base_director import BaseDirector, HitOutcome, Target

MOTION_PROFILES = ("linear", "curved", "erratic", "chaotic")
ERRATIC_PROBABILITY = 0.02


class TrackDirector(BaseDirector):
    mode = "track"
    clickable = False

    def __init__(self, canvas, params, rng) -> None:
        super().__init__(canvas, params, rng)
        self.speed = float(self.params.get("speed", 3.5))
        profile = str(self.params.get("motionProfile", "linear"))
        if profile not in MOTION_PROFILES:
            print(f"[WARN] Unknown motion profile '{profile}', using 'linear'.")
            profile = "linear"
        self.motion_profile = profile

    def spawn_initial(self, now_ms: float) -> None:
        self.targets = []
        x, y = self._random_position(self.size / 2.0)
        self._make_target(
            x,
            y,
            now_ms,
            vx=(self.rng.random() - 0.5) * self.speed * 2,
            vy=(self.rng.random() - 0.5) * self.speed * 2,
            motion_profile=self.motion_profile,
        )

    def on_tick(self, now_ms: float) -> List[Target]:
        if not self.targets:
            self.spawn_initial(now_ms)
            return []
        t = self.targets[0]
        t.x += t.vx
        t.y += t.vy
        self._bounce(t)
        self._perturb(t, now_ms)
        return []

    def on_hit(self, target_id: int, now_ms: float) -> HitOutcome:
        # Track targets are never removed by clicks
        return HitOutcome()

    def _bounce(self, t: Target) -> None:
        half = t.size / 2.0
        if t.x <= half or t.x >= self.canvas.width - half:
            t.vx *= -1
            t.x = clamp(t.x, half, self.canvas.width - half)
        if t.y <= half or t.y >= self.canvas.height - half:
            t.vy *= -1
            t.y = clamp(t.y, half, self.canvas.height - half)

    def _perturb(self, t: Target, now_ms: float) -> None:
        if t.motion_profile == "curved":
            secs = (now_ms - t.spawned_at) * 0.001
            t.vx += math.sin(secs) * 0.5
            t.vy += math.cos(secs) * 0.5
        elif t.motion_profile == "erratic":
            if self.rng.random() < ERRATIC_PROBABILITY:
                t.vx += (self.rng.random() - 0.5) * 2
                t.vy += (self.rng.random() - 0.5) * 2
        elif t.motion_profile == "chaotic":
            t.vx += (self.rng.random() - 0.5) * 1
            t.vy += (self.rng.random() - 0.5) * 1
            current = math.hypot(t.vx, t.vy)
            if current > self.speed:
                t.vx = t.vx / current * self.speed
                t.vy = t.vy / current * self.speed
