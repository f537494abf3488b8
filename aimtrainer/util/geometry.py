from __future__ import annotations

"""Geometry and timing helpers shared by directors, hit resolver and motion collector.

All coordinates are canvas-space floats; all times are milliseconds.
"""

import math
import random
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Canvas:
    width: float = 1280.0
    height: float = 720.0

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def within_size(px: float, py: float, cx: float, cy: float, size: float) -> bool:
    """True when (px, py) lies inside a circle of diameter `size` centred at (cx, cy)."""
    return distance(px, py, cx, cy) <= size / 2.0


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def random_point(rng: random.Random, canvas: Canvas, margin: float) -> Tuple[float, float]:
    """Uniform point inside the canvas keeping `margin` px away from every edge.

    Degenerate canvases (margin larger than half a side) collapse to the centre
    on that axis instead of failing.
    """
    lo_x, hi_x = margin, canvas.width - margin
    lo_y, hi_y = margin, canvas.height - margin
    x = rng.uniform(lo_x, hi_x) if hi_x > lo_x else canvas.width / 2.0
    y = rng.uniform(lo_y, hi_y) if hi_y > lo_y else canvas.height / 2.0
    return (x, y)


def elapsed_ms(now_ms: float, started_at: float, paused_accum_ms: float) -> float:
    return max(0.0, now_ms - started_at - paused_accum_ms)


def cm_per_360(dpi: float, sensitivity: float) -> float:
    """Physical mousepad travel for one full in-game turn (0 when eDPI is 0)."""
    edpi = float(dpi) * float(sensitivity)
    if edpi <= 0:
        return 0.0
    return 360.0 / edpi * 2.54


def sensitivity_for(dpi: float, cm360: float) -> float:
    """Inverse of cm_per_360 for a fixed DPI."""
    if dpi <= 0 or cm360 <= 0:
        return 0.0
    return 360.0 / (float(dpi) * (float(cm360) / 2.54))
