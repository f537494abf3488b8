from __future__ import annotations

"""Base target-director abstractions and the Target model.

A director owns the live target set for one drill and implements the spawn,
retire and movement policy of that drill. The engine talks to every drill
through the same three calls: `spawn_initial`, `on_tick` and `on_hit`.
"""

import random
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..util.geometry import Canvas, distance, random_point, within_size


@dataclass
class Target:
    """A single target on the canvas. `size` is the diameter in px."""

    id: int
    x: float
    y: float
    size: float
    spawned_at: float
    lifetime_ms: Optional[float] = None
    # tracking
    vx: float = 0.0
    vy: float = 0.0
    motion_profile: Optional[str] = None
    # switching
    active: bool = False
    index: int = 0
    activated_at: Optional[float] = None
    # flick: travel from the previous target's position
    flick_distance: Optional[float] = None

    @property
    def hit_radius(self) -> float:
        return self.size / 2.0

    def contains(self, x: float, y: float) -> bool:
        return within_size(x, y, self.x, self.y, self.size)

    def expired(self, now_ms: float) -> bool:
        if self.lifetime_ms is None:
            return False
        return now_ms - self.spawned_at > self.lifetime_ms

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HitOutcome:
    """Mode-specific consequences of a hit, returned to the hit resolver."""

    bonus: int = 0
    flick_distance: Optional[float] = None
    switch_ms: Optional[float] = None


class BaseDirector:
    """Abstract base for drill directors."""

    mode: str = "base"
    # Track-style drills score from dwell time, not from clicks.
    clickable: bool = True

    def __init__(self, canvas: Canvas, params: Dict[str, Any], rng: random.Random) -> None:
        self.canvas = canvas
        self.params = dict(params)
        self.rng = rng
        self.size = float(self.params.get("targetSize", 40))
        self.targets: List[Target] = []
        self._next_id = 1

    # --- interface -------------------------------------------------------
    def spawn_initial(self, now_ms: float) -> None:
        raise NotImplementedError

    def on_tick(self, now_ms: float) -> List[Target]:
        """Advance the drill by one frame. Returns targets retired by expiry."""
        return []

    def on_hit(self, target_id: int, now_ms: float) -> HitOutcome:
        self._remove(target_id)
        return HitOutcome()

    # --- queries ---------------------------------------------------------
    def eligible(self) -> List[Target]:
        """Targets a click may be resolved against, in insertion order."""
        return list(self.targets)

    def focus(self) -> Optional[Target]:
        """The target the cursor is expected to be on, used for motion sampling."""
        return self.targets[0] if self.targets else None

    def find(self, target_id: int) -> Optional[Target]:
        for t in self.targets:
            if t.id == target_id:
                return t
        return None

    def nearest(self, x: float, y: float) -> Optional[Tuple[Target, float]]:
        best: Optional[Tuple[Target, float]] = None
        for t in self.targets:
            d = distance(x, y, t.x, t.y)
            if best is None or d < best[1]:
                best = (t, d)
        return best

    @property
    def spawned_count(self) -> int:
        return self._next_id - 1

    def snapshot(self) -> List[Dict[str, Any]]:
        """Plain-dict view of the live targets for a renderer."""
        return [t.to_dict() for t in self.targets]

    def reset(self) -> None:
        self.targets = []
        self._next_id = 1

    # --- helpers ---------------------------------------------------------
    def _make_target(self, x: float, y: float, now_ms: float, **fields: Any) -> Target:
        t = Target(id=self._next_id, x=x, y=y, size=self.size, spawned_at=now_ms, **fields)
        self._next_id += 1
        self.targets.append(t)
        return t

    def _random_position(self, margin: float) -> Tuple[float, float]:
        return random_point(self.rng, self.canvas, margin)

    def _remove(self, target_id: int) -> Optional[Target]:
        for i, t in enumerate(self.targets):
            if t.id == target_id:
                return self.targets.pop(i)
        return None

    def _retire_expired(self, now_ms: float) -> List[Target]:
        kept: List[Target] = []
        gone: List[Target] = []
        for t in self.targets:
            (gone if t.expired(now_ms) else kept).append(t)
        self.targets = kept
        return gone
