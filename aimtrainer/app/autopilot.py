from __future__ import annotations

"""Simulated player used for demos, calibration dry runs and tests.

The autopilot pursues the director's focus target with a lagged proportional
step, adds Gaussian hand noise and waits a reaction delay whenever the focus
changes. It clicks once the cursor is inside the hit radius of a clickable
target. `speed_scale` multiplies the pursuit gain, so values above 1 overshoot
the way a too-fast sensitivity does.
"""

import random
from typing import Optional

from ..engine.clock import RUNNING
from ..engine.session import TestEngine
from ..util.geometry import clamp

BASE_GAIN = 0.15
SKILL_GAIN = 0.45
MAX_GAIN = 1.9


class Autopilot:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        *,
        skill: float = 0.7,
        speed_scale: float = 1.0,
        reaction_ms: float = 220.0,
        noise_px: float = 6.0,
        click: bool = True,
    ) -> None:
        self.rng = rng or random.Random()
        self.skill = clamp(float(skill), 0.0, 1.0)
        self.speed_scale = max(0.0, float(speed_scale))
        self.reaction_ms = max(0.0, float(reaction_ms))
        self.noise_px = max(0.0, float(noise_px))
        self.click_enabled = click
        self._focus_id: Optional[int] = None
        self._seen_at = 0.0

    @property
    def gain(self) -> float:
        return clamp((BASE_GAIN + SKILL_GAIN * self.skill) * self.speed_scale, 0.0, MAX_GAIN)

    def __call__(self, now_ms: float, engine: TestEngine) -> None:
        if engine.state != RUNNING:
            return
        focus = engine.director.focus()
        if focus is None:
            return
        if focus.id != self._focus_id:
            self._focus_id = focus.id
            self._seen_at = now_ms
        if now_ms - self._seen_at < self.reaction_ms:
            return
        cx, cy = engine.cursor
        sigma = self.noise_px * (1.0 - 0.7 * self.skill)
        nx = cx + (focus.x - cx) * self.gain + self.rng.gauss(0.0, sigma)
        ny = cy + (focus.y - cy) * self.gain + self.rng.gauss(0.0, sigma)
        engine.move(nx, ny)
        if self.click_enabled and engine.director.clickable and focus.contains(*engine.cursor):
            engine.click(engine.cursor[0], engine.cursor[1], now_ms)
