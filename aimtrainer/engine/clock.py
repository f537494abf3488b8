from __future__ import annotations

"""Session clock and state machine.

idle -> running -> {paused <-> running} -> ended -> idle

The clock never reads wall time; every transition takes the caller's `now_ms`.
Illegal transitions are no-ops and return False.
"""

from typing import Optional

from ..util.geometry import elapsed_ms

IDLE = "idle"
RUNNING = "running"
PAUSED = "paused"
ENDED = "ended"

STATES = (IDLE, RUNNING, PAUSED, ENDED)


class SessionClock:
    def __init__(self, duration_s: float) -> None:
        self.duration_ms = max(0.0, float(duration_s) * 1000.0)
        self.state = IDLE
        self.started_at: Optional[float] = None
        self.paused_accum_ms = 0.0
        self._paused_at: Optional[float] = None
        self.elapsed_ms = 0.0
        self.remaining_ms = self.duration_ms

    @property
    def running(self) -> bool:
        return self.state == RUNNING

    def start(self, now_ms: float) -> bool:
        if self.state != IDLE:
            return False
        self.started_at = float(now_ms)
        self.paused_accum_ms = 0.0
        self._paused_at = None
        self.elapsed_ms = 0.0
        self.remaining_ms = self.duration_ms
        self.state = RUNNING
        return True

    def pause(self, now_ms: float) -> bool:
        if self.state != RUNNING:
            return False
        self._paused_at = float(now_ms)
        self.state = PAUSED
        return True

    def resume(self, now_ms: float) -> bool:
        if self.state != PAUSED:
            return False
        if self._paused_at is not None:
            self.paused_accum_ms += max(0.0, float(now_ms) - self._paused_at)
        self._paused_at = None
        self.state = RUNNING
        return True

    def toggle_pause(self, now_ms: float) -> bool:
        if self.state == RUNNING:
            return self.pause(now_ms)
        return self.resume(now_ms)

    def tick(self, now_ms: float) -> bool:
        """Advance bookkeeping. Returns True exactly once, on the tick that ends the session."""
        if self.state != RUNNING or self.started_at is None:
            return False
        self.elapsed_ms = elapsed_ms(now_ms, self.started_at, self.paused_accum_ms)
        self.remaining_ms = max(0.0, self.duration_ms - self.elapsed_ms)
        if self.remaining_ms <= 0:
            self.elapsed_ms = self.duration_ms
            self.state = ENDED
            return True
        return False

    def offset(self, now_ms: float) -> float:
        """Session-relative time of `now_ms` with pauses removed."""
        if self.started_at is None:
            return 0.0
        paused = self.paused_accum_ms
        if self._paused_at is not None:
            paused += max(0.0, float(now_ms) - self._paused_at)
        return elapsed_ms(now_ms, self.started_at, paused)

    def exit(self) -> None:
        """Cancel from any state and return to idle."""
        self.state = IDLE
        self.started_at = None
        self.paused_accum_ms = 0.0
        self._paused_at = None
        self.elapsed_ms = 0.0
        self.remaining_ms = self.duration_ms
