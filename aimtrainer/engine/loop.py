from __future__ import annotations

"""Fixed-step frame loop.

Drives a TestEngine at a fixed tick interval. In virtual mode time advances by
exactly one step per frame, which is what replays, the autopilot and tests use.
In real-time mode the loop reads `time.perf_counter` and sleeps between frames.
"""

import time
from typing import Callable, Optional

from ..results.schema import SessionMetrics
from .clock import PAUSED, RUNNING
from .session import TestEngine

FrameCallback = Callable[[float, TestEngine], None]


class FixedStepLoop:
    def __init__(
        self,
        engine: TestEngine,
        fps: int = 60,
        *,
        realtime: bool = False,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.engine = engine
        self.fps = int(fps)
        self.step_ms = 1000.0 / self.fps
        self.realtime = realtime
        self._clock = clock
        self._sleep = sleep
        self.frames = 0

    def _now(self, virtual_ms: float) -> float:
        return self._clock() * 1000.0 if self.realtime else virtual_ms

    def run(
        self,
        start_ms: float = 0.0,
        *,
        on_frame: Optional[FrameCallback] = None,
        max_frames: Optional[int] = None,
    ) -> Optional[SessionMetrics]:
        """Start the engine and tick until it ends, is cancelled, or `max_frames` is reached.

        `on_frame(now_ms, engine)` runs before each tick and is where input
        (moves, clicks, pause toggles) is delivered, so clicks and ticks never
        interleave. Paused frames deliver input but no tick.
        """
        virtual = float(start_ms)
        self.engine.start(self._now(virtual))
        self.frames = 0
        while self.engine.state in (RUNNING, PAUSED):
            frame_start = self._now(virtual)
            if on_frame is not None:
                on_frame(frame_start, self.engine)
            if self.engine.state == RUNNING:
                self.engine.tick(frame_start)
            self.frames += 1
            if max_frames is not None and self.frames >= max_frames:
                break
            virtual += self.step_ms
            if self.realtime:
                spent = self._now(virtual) - frame_start
                if spent < self.step_ms:
                    self._sleep((self.step_ms - spent) / 1000.0)
        return self.engine.metrics
