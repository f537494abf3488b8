from __future__ import annotations

"""Replay a scripted input sequence against the engine.

Scripts are YAML or JSON (JSON is valid YAML), either a list of events or a
mapping with an `events` list. Each event has `t` in ms relative to the first
frame, an `action` and, for move/click, `x` and `y`:

    events:
      - {t: 0, action: move, x: 400, y: 300}
      - {t: 150, action: click, x: 400, y: 300}
      - {t: 2000, action: pause}
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Optional

import yaml

from ..engine.session import TestEngine

ACTIONS = {"move", "click", "pause", "resume", "exit"}


@dataclass(frozen=True)
class ReplayEvent:
    t: float
    action: str
    x: float = 0.0
    y: float = 0.0


def parse_events(raw: Any) -> List[ReplayEvent]:
    if isinstance(raw, dict):
        raw = raw.get("events")
    if not isinstance(raw, list):
        raise ValueError("replay script must be a list of events or a mapping with 'events'")
    events: List[ReplayEvent] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"event #{i} is not a mapping")
        action = str(item.get("action", "")).lower()
        if action not in ACTIONS:
            raise ValueError(f"event #{i}: unknown action {item.get('action')!r}")
        try:
            t = float(item["t"])
            x = float(item.get("x", 0.0))
            y = float(item.get("y", 0.0))
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"event #{i}: 't', 'x' and 'y' must be numbers") from None
        if action in ("move", "click") and ("x" not in item or "y" not in item):
            raise ValueError(f"event #{i}: {action} needs x and y")
        events.append(ReplayEvent(t, action, x, y))
    # stable: equal timestamps keep script order
    return sorted(events, key=lambda e: e.t)


def load_script(path: str | Path) -> List[ReplayEvent]:
    with Path(path).open("r", encoding="utf-8") as f:
        return parse_events(yaml.safe_load(f))


class ReplayDriver:
    """Frame callback that delivers every event whose time has come."""

    def __init__(self, events: Iterable[ReplayEvent]) -> None:
        self.events = list(events)
        self._pos = 0
        self._origin: Optional[float] = None

    @property
    def finished(self) -> bool:
        return self._pos >= len(self.events)

    def __call__(self, now_ms: float, engine: TestEngine) -> None:
        if self._origin is None:
            self._origin = now_ms
        rel = now_ms - self._origin
        while self._pos < len(self.events) and self.events[self._pos].t <= rel:
            ev = self.events[self._pos]
            self._pos += 1
            if ev.action == "move":
                engine.move(ev.x, ev.y)
            elif ev.action == "click":
                engine.click(ev.x, ev.y, now_ms)
            elif ev.action == "pause":
                engine.pause(now_ms)
            elif ev.action == "resume":
                engine.resume(now_ms)
            else:
                engine.exit()
                return
