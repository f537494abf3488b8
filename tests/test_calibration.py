import random
import unittest

from aimtrainer.app.autopilot import Autopilot
from aimtrainer.engine.calibration import CalibrationSession, ConfigurationMissingError, require_settings
from aimtrainer.engine.loop import FixedStepLoop
from aimtrainer.util.geometry import cm_per_360


def _drive(step, engine) -> None:
    FixedStepLoop(engine, 60).run(on_frame=Autopilot(random.Random(step.index), click=False))


class RequireSettingsTests(unittest.TestCase):
    def test_missing_or_invalid(self) -> None:
        for dpi, sens in ((None, 0.5), (800, None), (0, 0.5), (800, -1), ("abc", 0.5)):
            with self.assertRaises(ConfigurationMissingError):
                require_settings(dpi, sens)
        self.assertTrue(issubclass(ConfigurationMissingError, ValueError))
        self.assertEqual(require_settings("800", "0.5"), (800, 0.5))

    def test_session_refuses_to_start(self) -> None:
        with self.assertRaises(ConfigurationMissingError):
            CalibrationSession(None, None)


class SweepTests(unittest.TestCase):
    def test_steps_follow_multipliers(self) -> None:
        cs = CalibrationSession(800, 0.5)
        self.assertEqual([s.dpi for s in cs.steps], [640, 720, 800, 880, 960])
        for got, want in zip([s.sensitivity for s in cs.steps], [0.4, 0.45, 0.5, 0.55, 0.6]):
            self.assertAlmostEqual(got, want)

    def test_run_all_produces_one_run_per_step(self) -> None:
        submitted = []
        cs = CalibrationSession(800, 0.5, duration_s=2, rng=random.Random(4), on_run=submitted.append)
        runs = cs.run_all(_drive)
        self.assertTrue(cs.done)
        self.assertIsNone(cs.current)
        self.assertEqual(len(runs), 5)
        self.assertEqual(submitted, runs)
        for step, run in zip(cs.steps, runs):
            self.assertEqual(run.dpi, step.dpi)
            self.assertAlmostEqual(run.cm_per_360, cm_per_360(step.dpi, step.sensitivity))
            self.assertTrue(0.0 <= run.accuracy_pct <= 100.0)
            self.assertTrue(0.0 <= run.consistency_pct <= 100.0)
            self.assertGreaterEqual(run.overshoot_rate, 0.0)
        best = cs.best_run()
        self.assertEqual(best, max(runs, key=lambda r: r.accuracy_pct * 0.6 + r.consistency_pct * 0.4))

    def test_autopilot_stays_on_orbit(self) -> None:
        cs = CalibrationSession(800, 0.5, multipliers=[1.0], duration_s=3, rng=random.Random(1))
        run = cs.run_all(_drive)[0]
        self.assertGreater(run.accuracy_pct, 50.0)
        self.assertGreater(run.path_efficiency_pct, 0.0)

    def test_cancelled_step_stops_sweep(self) -> None:
        submitted = []
        cs = CalibrationSession(800, 0.5, duration_s=2, on_run=submitted.append)

        def quit_early(step, engine) -> None:
            FixedStepLoop(engine, 60).run(on_frame=lambda now, e: e.exit() if now > 500 else None)

        self.assertEqual(cs.run_all(quit_early), [])
        self.assertEqual(submitted, [])
        self.assertIsNone(cs.best_run())

    def test_failing_sink_does_not_stop_sweep(self) -> None:
        def boom(_run):
            raise OSError("disk full")

        cs = CalibrationSession(800, 0.5, multipliers=[0.9, 1.1], duration_s=1, on_run=boom)
        self.assertEqual(len(cs.run_all(_drive)), 2)


if __name__ == "__main__":
    unittest.main()
