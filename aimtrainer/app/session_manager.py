from __future__ import annotations

"""Session Manager: orchestrates drills, calibration sweeps and persistence.

CLI-agnostic: the caller supplies a frame callback (autopilot, replay or a
real input adapter) and the manager drives the engine through a fixed-step
loop. Finished sessions are handed to the configured result sinks.
"""

import random
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from storage.store import load_calibration_runs

from ..engine.calibration import CalibrationSession, SweepStep
from ..engine.loop import FixedStepLoop, FrameCallback
from ..engine.session import TestEngine, TestSession
from ..optimizer.profiles import build_catalog, get_profile
from ..optimizer.sensitivity import OptimizationResult, optimize
from ..results.persist import JsonLinesSink
from ..results.result_manager import ParquetResultSink, ResultManager, ResultSink, calibration_runs_from_frame
from ..results.schema import CalibrationRun, SessionMetrics
from ..util.geometry import Canvas
from ..util.randomness import make_rng
from .drill_registry import make_director
from .events import EventBus
from .explain import trace as xtrace


@dataclass(frozen=True)
class SessionContext:
    user_id: str
    started_at: datetime
    mode: str
    difficulty: str
    duration_s: float
    target_size: Optional[str]
    params: Dict[str, Any]


@dataclass
class RuntimeState:
    sessions: int = 0
    ended_at: Optional[datetime] = None
    last_metrics: Optional[SessionMetrics] = None


class SessionManager:
    def __init__(
        self,
        cfg: Dict[str, Any],
        *,
        sinks: Optional[List[ResultSink]] = None,
        rng: Optional[random.Random] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.cfg = cfg
        canvas = cfg.get("canvas", {})
        self.canvas = Canvas(float(canvas.get("width", 1280)), float(canvas.get("height", 720)))
        self.fps = int(canvas.get("fps", 60))
        self.rng = rng or make_rng()
        self.bus = bus or EventBus()
        self.results = ResultManager(self._default_sinks() if sinks is None else sinks)
        self.ctx: Optional[SessionContext] = None
        self.state = RuntimeState()
        self.engine: Optional[TestEngine] = None

    @property
    def user_id(self) -> str:
        return str(self.cfg.get("storage", {}).get("user", "local"))

    @property
    def data_dir(self) -> Path:
        return Path(self.cfg.get("storage", {}).get("data_dir", "storage/data"))

    def _default_sinks(self) -> List[ResultSink]:
        storage = self.cfg.get("storage", {})
        sinks: List[ResultSink] = []
        if storage.get("enabled", True):
            try:
                sinks.append(ParquetResultSink(self.data_dir, user_id=self.user_id))
            except OSError as e:
                print(f"[WARN] Parquet store unavailable at {self.data_dir}: {e}")
        if storage.get("jsonl_dir"):
            sinks.append(JsonLinesSink(storage["jsonl_dir"], user_id=self.user_id))
        return sinks

    # --- drills ---------------------------------------------------------------
    def start_session(
        self,
        mode: Optional[str] = None,
        difficulty: Optional[str] = None,
        *,
        target_size: Optional[str] = None,
        duration_s: Optional[float] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TestEngine:
        # Resolve: defaults.yml session -> call arguments; params: preset -> size -> overrides
        session_cfg = self.cfg.get("session", {})
        mode = mode or session_cfg.get("mode", "gridshot")
        difficulty = difficulty or session_cfg.get("difficulty", "medium")
        target_size = target_size or session_cfg.get("target_size")
        duration = float(duration_s if duration_s is not None else session_cfg.get("duration_s", 60))

        director = make_director(
            mode,
            difficulty=difficulty,
            canvas=self.canvas,
            rng=self.rng,
            target_size=target_size,
            overrides=overrides,
        )
        track = self.cfg.get("track", {})
        self.engine = TestEngine(
            TestSession(mode, difficulty, duration, target_size),
            director,
            scoring=self.cfg.get("scoring"),
            track_click_policy=str(track.get("click_policy", "miss")),
            dwell_increment=float(track.get("dwell_increment", 0.1)),
            bus=self.bus,
            on_finish=self._on_finish,
        )
        self.ctx = SessionContext(
            user_id=self.user_id,
            started_at=datetime.now(timezone.utc),
            mode=mode,
            difficulty=difficulty,
            duration_s=duration,
            target_size=target_size,
            params=dict(director.params),
        )
        self.state.ended_at = None
        xtrace("session_prepared", {"mode": mode, "difficulty": difficulty, "duration_s": duration, "size": director.size})
        return self.engine

    def preview_params(self) -> Dict[str, Any]:
        if self.ctx is None:
            raise RuntimeError("no session started")
        return dict(self.ctx.params)

    def run(
        self,
        driver: Optional[FrameCallback] = None,
        *,
        realtime: bool = False,
        max_frames: Optional[int] = None,
    ) -> Optional[SessionMetrics]:
        """Drive the prepared engine to its end. Returns None if it was cancelled."""
        if self.engine is None:
            raise RuntimeError("no session started")
        loop = FixedStepLoop(self.engine, self.fps, realtime=realtime)
        return loop.run(on_frame=driver, max_frames=max_frames)

    def _on_finish(self, metrics: SessionMetrics) -> None:
        self.state.sessions += 1
        self.state.ended_at = datetime.now(timezone.utc)
        self.state.last_metrics = metrics
        failed = self.results.submit_result(metrics)
        if failed:
            xtrace("submit_failed", {"sinks": failed})

    def summary(self) -> Dict[str, Any]:
        m = self.state.last_metrics
        if self.ctx is None or m is None:
            return {}
        return {
            "mode": m.mode,
            "difficulty": m.difficulty,
            "score": m.score,
            "accuracy": round(m.accuracy_pct, 2),
            "shots": m.total_shots,
            "hits": m.total_hits,
            "misses": m.total_misses,
            "expired": m.expired_targets,
            "avg_reaction_ms": round(m.avg_reaction_ms, 1),
            "kills_per_second": round(m.kills_per_second, 3),
            "streak_best": m.streak_best,
            "started_at": self.ctx.started_at.isoformat(),
            "ended_at": self.state.ended_at.isoformat() if self.state.ended_at else None,
        }

    def stop(self) -> None:
        if self.engine is not None:
            self.engine.exit()
        self.state.ended_at = datetime.now(timezone.utc)

    # --- calibration and optimizer ----------------------------------------------
    def calibrate(
        self,
        driver_for: Callable[[SweepStep], FrameCallback],
        *,
        dpi: Any = None,
        sensitivity: Any = None,
        realtime: bool = False,
    ) -> CalibrationSession:
        """Run a full sweep; `driver_for(step)` returns the frame callback of that sub-test.

        Raises ConfigurationMissingError when DPI/sensitivity are missing in
        both the arguments and the config.
        """
        calib = self.cfg.get("calibration", {})
        session = CalibrationSession(
            dpi if dpi is not None else calib.get("dpi"),
            sensitivity if sensitivity is not None else calib.get("sensitivity"),
            multipliers=calib.get("multipliers", (0.8, 0.9, 1.0, 1.1, 1.2)),
            duration_s=float(calib.get("duration_s", 30)),
            canvas=self.canvas,
            orbit_radius=float(calib.get("orbit_radius", 150)),
            angular_speed=float(calib.get("angular_speed", 0.02)),
            target_size=float(calib.get("target_size", 50)),
            rng=self.rng,
            on_run=self._store_run,
        )

        def drive(step: SweepStep, engine: TestEngine) -> None:
            FixedStepLoop(engine, self.fps, realtime=realtime).run(on_frame=driver_for(step))

        session.run_all(drive)
        return session

    def _store_run(self, run: CalibrationRun) -> None:
        self.results.submit_calibration(run)

    def load_calibration_history(self) -> List[CalibrationRun]:
        return calibration_runs_from_frame(load_calibration_runs(self.data_dir, user_id=self.user_id))

    def recommend(
        self,
        game: Optional[str] = None,
        dpi: Optional[int] = None,
        *,
        runs: Optional[List[CalibrationRun]] = None,
    ) -> OptimizationResult:
        opt = self.cfg.get("optimizer", {})
        catalog = build_catalog(self.cfg.get("profiles") or {})
        profile = get_profile(game or opt.get("game"), catalog)
        if runs is None:
            runs = self.load_calibration_history()
        preferred = dpi if dpi is not None else self.cfg.get("calibration", {}).get("dpi")
        return optimize(
            runs,
            preferred,
            profile,
            top_n=int(opt.get("top_n", 5)),
            min_runs=int(opt.get("min_runs", 2)),
        )
