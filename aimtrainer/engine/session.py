from __future__ import annotations

"""Test engine: one drill session driven tick by tick.

The engine owns the session clock, the director's target set, the hit resolver,
the metrics aggregator and the motion collector. It never reads wall time:
callers pass `now_ms` and the engine converts it to a pause-free session offset
before handing it to the components, so reaction times exclude pauses.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from ..app.events import EventBus
from ..app.explain import trace as xtrace
from ..drills.base_director import BaseDirector
from ..results.schema import SessionMetrics
from ..stats.stats import MetricsAggregator
from ..util.geometry import Canvas, clamp
from .clock import ENDED, IDLE, PAUSED, RUNNING, SessionClock
from .hits import ClickResult, HitResolver
from .motion import MotionAnalysis, MotionSampleCollector

MODES = ("gridshot", "flick", "track", "switch", "calibration")


@dataclass
class TestSession:
    mode: str
    difficulty: str
    duration_s: float
    target_size_override: Optional[str] = None
    clock: SessionClock = field(init=False)

    # Not a test case, despite the name.
    __test__ = False

    def __post_init__(self) -> None:
        self.clock = SessionClock(self.duration_s)

    @property
    def state(self) -> str:
        return self.clock.state

    @property
    def started_at(self) -> Optional[float]:
        return self.clock.started_at

    @property
    def paused_accum_ms(self) -> float:
        return self.clock.paused_accum_ms


class TestEngine:
    __test__ = False

    def __init__(
        self,
        session: TestSession,
        director: BaseDirector,
        *,
        scoring: Optional[Dict[str, Any]] = None,
        track_click_policy: str = "miss",
        dwell_increment: float = 0.1,
        bus: Optional[EventBus] = None,
        on_finish: Optional[Callable[[SessionMetrics], None]] = None,
    ) -> None:
        if session.mode != director.mode:
            raise ValueError(f"Director mode '{director.mode}' does not match session mode '{session.mode}'")
        self.session = session
        self.director = director
        self.canvas: Canvas = director.canvas
        self.bus = bus or EventBus()
        self.on_finish = on_finish
        self._scoring = dict(scoring or {})
        self._track_click_policy = track_click_policy
        self._dwell_increment = float(dwell_increment)
        self.cursor: Tuple[float, float] = self.canvas.center
        self.metrics: Optional[SessionMetrics] = None
        self.analysis: Optional[MotionAnalysis] = None
        self._reset_components()

    def _reset_components(self) -> None:
        self.aggregator = MetricsAggregator(self.session.mode, dwell_increment=self._dwell_increment)
        self.collector = MotionSampleCollector(self.director.size)
        self.resolver = HitResolver(
            self.director,
            self.aggregator,
            base_points=int(self._scoring.get("base_points", 100)),
            bonus_window_ms=float(self._scoring.get("reaction_bonus_window_ms", 500)),
            bonus_per_ms=float(self._scoring.get("reaction_bonus_per_ms", 0.1)),
            track_click_policy=self._track_click_policy,
        )

    @property
    def clock(self) -> SessionClock:
        return self.session.clock

    @property
    def state(self) -> str:
        return self.clock.state

    # --- lifecycle ---------------------------------------------------------
    def start(self, now_ms: float) -> bool:
        if not self.clock.start(now_ms):
            return False
        self.metrics = None
        self.analysis = None
        self.cursor = self.canvas.center
        self.director.reset()
        self._reset_components()
        self.director.spawn_initial(0.0)
        xtrace("session_started", {"mode": self.session.mode, "difficulty": self.session.difficulty, "duration_s": self.session.duration_s})
        self.bus.emit("session_started", {"mode": self.session.mode, "targets": self.director.snapshot()})
        return True

    def pause(self, now_ms: float) -> bool:
        ok = self.clock.pause(now_ms)
        if ok:
            self.bus.emit("paused", {"t_ms": self.clock.offset(now_ms)})
        return ok

    def resume(self, now_ms: float) -> bool:
        ok = self.clock.resume(now_ms)
        if ok:
            self.bus.emit("resumed", {"t_ms": self.clock.offset(now_ms)})
        return ok

    def toggle_pause(self, now_ms: float) -> bool:
        if self.state == RUNNING:
            return self.pause(now_ms)
        return self.resume(now_ms)

    def exit(self) -> None:
        """Cancel immediately from any state; nothing is finalized or persisted."""
        self.clock.exit()
        self.director.reset()
        self._reset_components()
        self.metrics = None
        self.analysis = None
        self.cursor = self.canvas.center
        xtrace("session_cancelled", {"mode": self.session.mode})

    # --- input ---------------------------------------------------------------
    def move(self, x: float, y: float) -> None:
        self.cursor = (clamp(float(x), 0.0, self.canvas.width), clamp(float(y), 0.0, self.canvas.height))

    def click(self, x: float, y: float, now_ms: float) -> ClickResult:
        if self.state != RUNNING:
            return ClickResult(counted=False)
        self.move(x, y)
        t = self.clock.offset(now_ms)
        result = self.resolver.on_click(self.cursor[0], self.cursor[1], t)
        if result.counted:
            self.bus.emit("hit" if result.hit else "miss", {"t_ms": t, "x": self.cursor[0], "y": self.cursor[1], "points": result.points})
        return result

    # --- frame ---------------------------------------------------------------
    def tick(self, now_ms: float) -> Optional[SessionMetrics]:
        """Advance one frame. Returns the finalized metrics on the tick that ends the session."""
        if self.state != RUNNING:
            return None
        if self.clock.tick(now_ms):
            return self._finish()
        t = self.clock.elapsed_ms
        expired = self.director.on_tick(t)
        if expired:
            self.aggregator.record_expired(len(expired))
            self.bus.emit("targets_expired", {"t_ms": t, "ids": [e.id for e in expired]})
        focus = self.director.focus()
        sample = self.collector.record(
            t,
            self.cursor[0],
            self.cursor[1],
            focus.x if focus is not None else None,
            focus.y if focus is not None else None,
        )
        if self.session.mode == "track":
            self.aggregator.record_dwell(sample.on_target)
        return None

    def targets(self):
        return self.director.snapshot()

    def _finish(self) -> SessionMetrics:
        self.analysis = self.collector.analyze()
        self.metrics = self.aggregator.finalize(
            elapsed_s=self.clock.elapsed_ms / 1000.0,
            difficulty=self.session.difficulty,
            duration_s=self.session.duration_s,
            target_size=self.director.size,
            targets_seen=self.director.spawned_count,
            motion=self.analysis,
        )
        xtrace(
            "session_ended",
            {"mode": self.session.mode, "score": self.metrics.score, "shots": self.metrics.total_shots, "hits": self.metrics.total_hits},
        )
        self.bus.emit("session_ended", self.metrics)
        if self.on_finish is not None:
            try:
                self.on_finish(self.metrics)
            except Exception as e:
                # Submission is fire-and-forget; local results stay intact
                print(f"[WARN] Result submission failed: {e}")
                xtrace("submit_failed", {"error": str(e)})
        return self.metrics


__all__ = ["MODES", "TestEngine", "TestSession", "IDLE", "RUNNING", "PAUSED", "ENDED"]
