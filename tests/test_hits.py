import random
import unittest

from aimtrainer.app.drill_registry import make_director
from aimtrainer.engine.session import TestEngine, TestSession
from aimtrainer.util.geometry import Canvas


def _engine(mode: str, difficulty: str = "easy", seed: int = 5, duration_s: float = 60, **kw) -> TestEngine:
    director = make_director(mode, difficulty=difficulty, canvas=Canvas(), rng=random.Random(seed))
    return TestEngine(TestSession(mode, difficulty, duration_s), director, **kw)


def _far_point(t):
    return (0.0 if t.x > 640 else 1280.0, 0.0 if t.y > 360 else 720.0)


class HitResolutionTests(unittest.TestCase):
    def test_gridshot_single_centre_click(self) -> None:
        engine = _engine("gridshot")
        engine.start(0.0)
        t = engine.director.targets[0]
        self.assertEqual(t.spawned_at, 0.0)
        res = engine.click(t.x, t.y, 150.0)
        self.assertTrue(res.hit)
        self.assertEqual(res.reaction_ms, 150.0)
        # 100 base + floor((500 - 150) * 0.1)
        self.assertEqual(res.points, 135)
        m = engine.tick(60000.0)
        self.assertIsNotNone(m)
        self.assertEqual(m.total_hits, 1)
        self.assertEqual(m.total_shots, 1)
        self.assertEqual(m.accuracy_pct, 100.0)
        self.assertEqual(m.reaction_times_ms, [150.0])
        self.assertEqual(m.score, 135)

    def test_flick_far_click_is_miss(self) -> None:
        engine = _engine("flick")
        engine.start(0.0)
        first = engine.director.targets[0]
        self.assertTrue(engine.click(first.x, first.y, 300.0).hit)
        self.assertEqual(engine.aggregator.streak, 1)
        before = [t.id for t in engine.director.targets]
        fx, fy = _far_point(engine.director.targets[0])
        res = engine.click(fx, fy, 400.0)
        self.assertFalse(res.hit)
        self.assertIsNotNone(res.nearest_distance)
        self.assertEqual([t.id for t in engine.director.targets], before)
        self.assertEqual(engine.aggregator.total_misses, 1)
        self.assertEqual(engine.aggregator.streak, 0)
        self.assertEqual(engine.aggregator.streak_best, 1)

    def test_reaction_excludes_pause(self) -> None:
        engine = _engine("gridshot")
        engine.start(0.0)
        t = engine.director.targets[0]
        engine.pause(100.0)
        self.assertFalse(engine.click(t.x, t.y, 200.0).counted)
        engine.resume(1100.0)
        res = engine.click(t.x, t.y, 1200.0)
        self.assertEqual(res.reaction_ms, 200.0)

    def test_clicks_ignored_outside_running(self) -> None:
        engine = _engine("gridshot")
        self.assertFalse(engine.click(10, 10, 0.0).counted)
        engine.start(0.0)
        engine.tick(60000.0)
        self.assertFalse(engine.click(10, 10, 60001.0).counted)
        self.assertEqual(engine.metrics.total_shots, 0)

    def test_track_click_policies(self) -> None:
        engine = _engine("track")
        engine.start(0.0)
        res = engine.click(640, 360, 10.0)
        self.assertTrue(res.counted)
        self.assertFalse(res.hit)
        self.assertEqual(engine.aggregator.total_misses, 1)

        engine = _engine("track", track_click_policy="ignore")
        engine.start(0.0)
        self.assertFalse(engine.click(640, 360, 10.0).counted)
        self.assertEqual(engine.aggregator.total_shots, 0)

    def test_switch_inactive_target_is_miss(self) -> None:
        engine = _engine("switch")
        engine.start(0.0)
        inactive = engine.director.targets[1]
        res = engine.click(inactive.x, inactive.y, 50.0)
        self.assertFalse(res.hit)
        active = engine.director.active
        res = engine.click(active.x, active.y, 80.0)
        self.assertTrue(res.hit)
        self.assertEqual(engine.aggregator.switch_speeds, [80.0])

    def test_expired_targets_are_not_shots(self) -> None:
        engine = _engine("gridshot", "extreme")
        engine.start(0.0)
        now = 0.0
        while engine.state == "running":
            engine.tick(now)
            now += 16.0
        m = engine.metrics
        self.assertGreater(m.expired_targets, 0)
        self.assertEqual(m.total_shots, 0)
        self.assertEqual(m.total_shots, m.total_hits + m.total_misses)

    def test_reaction_bonus(self) -> None:
        engine = _engine("gridshot")
        r = engine.resolver
        self.assertEqual(r.reaction_bonus(0), 50)
        self.assertEqual(r.reaction_bonus(150), 35)
        self.assertEqual(r.reaction_bonus(500), 0)
        self.assertEqual(r.reaction_bonus(900), 0)

    def test_cursor_clamped_to_canvas(self) -> None:
        engine = _engine("gridshot")
        engine.move(-50, 5000)
        self.assertEqual(engine.cursor, (0.0, 720.0))

    def test_exit_discards_session(self) -> None:
        finished = []
        engine = _engine("gridshot", on_finish=finished.append)
        engine.start(0.0)
        t = engine.director.targets[0]
        engine.click(t.x, t.y, 100.0)
        engine.exit()
        self.assertEqual(engine.state, "idle")
        self.assertIsNone(engine.metrics)
        self.assertEqual(engine.aggregator.total_shots, 0)
        self.assertEqual(finished, [])

    def test_failing_finish_hook_keeps_metrics(self) -> None:
        def boom(_m):
            raise RuntimeError("network down")

        engine = _engine("gridshot", duration_s=1, on_finish=boom)
        engine.start(0.0)
        m = engine.tick(1000.0)
        self.assertIsNotNone(m)
        self.assertIs(engine.metrics, m)


if __name__ == "__main__":
    unittest.main()
