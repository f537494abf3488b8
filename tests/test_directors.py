import math
import random
import unittest

from aimtrainer.app.drill_registry import UnknownModeError, get_drill, list_drills, make_director, resolve_params
from aimtrainer.drills.track import MOTION_PROFILES
from aimtrainer.util.geometry import Canvas, distance


class _FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def _director(mode: str, difficulty: str = "medium", seed: int = 7, **kw):
    return make_director(mode, difficulty=difficulty, canvas=Canvas(), rng=random.Random(seed), **kw)


class RegistryTests(unittest.TestCase):
    def test_lists_all_modes(self) -> None:
        ids = [m.id for m in list_drills()]
        self.assertEqual(ids, ["gridshot", "flick", "track", "switch", "calibration"])
        self.assertEqual(set(get_drill("flick").presets), {"easy", "medium", "hard", "extreme"})

    def test_unknown_mode(self) -> None:
        with self.assertRaises(UnknownModeError):
            get_drill("sniper")
        with self.assertRaises(KeyError):
            make_director("sniper")

    def test_resolve_order(self) -> None:
        p = resolve_params("gridshot", "easy")
        self.assertEqual(p["targetSize"], 60)
        p = resolve_params("gridshot", "easy", target_size="tiny")
        self.assertEqual(p["targetSize"], 15)
        p = resolve_params("gridshot", "easy", target_size="tiny", overrides={"targetSize": 33, "maxTargets": 2})
        self.assertEqual(p["targetSize"], 33)
        self.assertEqual(p["maxTargets"], 2)

    def test_unknown_difficulty_falls_back(self) -> None:
        p = resolve_params("switch", "insane")
        self.assertEqual(p, get_drill("switch").presets["medium"])


class GridshotTests(unittest.TestCase):
    def test_spawn_inside_canvas(self) -> None:
        d = _director("gridshot", "easy")
        d.spawn_initial(0.0)
        self.assertEqual(len(d.targets), 1)
        t = d.targets[0]
        self.assertTrue(t.hit_radius <= t.x <= 1280 - t.hit_radius)
        self.assertTrue(t.hit_radius <= t.y <= 720 - t.hit_radius)
        self.assertEqual(t.hit_radius, 30.0)

    def test_never_exceeds_max_targets(self) -> None:
        d = _director("gridshot", "extreme")
        d.spawn_initial(0.0)
        for i in range(1, 2000):
            d.on_tick(i * 16.0)
            self.assertLessEqual(len(d.targets), d.max_targets)
            self.assertGreaterEqual(len(d.targets), 1)

    def test_expiry_returns_target_and_refills(self) -> None:
        d = _director("gridshot", "easy")
        d.spawn_initial(0.0)
        first = d.targets[0].id
        self.assertEqual(d.on_tick(2500.0), [])
        expired = d.on_tick(2501.0)
        self.assertEqual([t.id for t in expired], [first])
        self.assertEqual(len(d.targets), 1)
        self.assertNotEqual(d.targets[0].id, first)

    def test_hit_removes_and_refills_empty_field(self) -> None:
        d = _director("gridshot", "easy")
        d.spawn_initial(0.0)
        tid = d.targets[0].id
        d.on_hit(tid, 100.0)
        self.assertIsNone(d.find(tid))
        self.assertEqual(len(d.targets), 1)


class FlickTests(unittest.TestCase):
    def test_single_target_far_from_anchor(self) -> None:
        d = _director("flick", "easy", seed=3)
        d.spawn_initial(0.0)
        self.assertEqual(len(d.targets), 1)
        t = d.targets[0]
        self.assertAlmostEqual(t.flick_distance, distance(640, 360, t.x, t.y))
        self.assertGreaterEqual(t.flick_distance, 300)

    def test_hit_bonus_from_travel(self) -> None:
        d = _director("flick", "medium", seed=11)
        d.spawn_initial(0.0)
        t = d.targets[0]
        out = d.on_hit(t.id, 200.0)
        self.assertEqual(out.bonus, int(math.floor(t.flick_distance / 10.0)))
        self.assertEqual(len(d.targets), 1)
        nxt = d.targets[0]
        self.assertAlmostEqual(nxt.flick_distance, distance(t.x, t.y, nxt.x, nxt.y))

    def test_expiry_spawns_replacement(self) -> None:
        d = _director("flick", "easy", seed=5)
        d.spawn_initial(0.0)
        first = d.targets[0]
        self.assertEqual(d.on_tick(3000.0), [])
        expired = d.on_tick(3001.0)
        self.assertEqual([t.id for t in expired], [first.id])
        self.assertEqual(len(d.targets), 1)
        self.assertNotEqual(d.targets[0].id, first.id)
        self.assertEqual(d.targets[0].spawned_at, 3001.0)

    def test_unreachable_min_distance_still_spawns(self) -> None:
        d = _director("flick", "easy", overrides={"minDistance": 5000})
        d.spawn_initial(0.0)
        for _ in range(3):
            d.on_hit(d.targets[0].id, 100.0)
            self.assertEqual(len(d.targets), 1)
            t = d.targets[0]
            self.assertTrue(t.size <= t.x <= 1280 - t.size)
            self.assertTrue(t.size <= t.y <= 720 - t.size)


class SwitchTests(unittest.TestCase):
    def test_exactly_one_active(self) -> None:
        d = _director("switch", "hard")
        d.spawn_initial(0.0)
        self.assertEqual(len(d.targets), 6)
        for i in range(1, 600):
            d.on_tick(i * 16.0)
            self.assertEqual(sum(1 for t in d.targets if t.active), 1)
            self.assertEqual(d.eligible(), [d.active])

    def test_switches_after_rate(self) -> None:
        d = _director("switch", "easy")
        d.spawn_initial(0.0)
        self.assertEqual(d.active_index, 0)
        d.on_tick(1500.0)
        self.assertEqual(d.active_index, 0)
        d.on_tick(1501.0)
        self.assertEqual(d.active_index, 1)
        self.assertEqual(d.active.activated_at, 1501.0)

    def test_unreachable_separation_still_spawns_all(self) -> None:
        d = _director("switch", "hard", overrides={"maxDistance": 10000})
        d.spawn_initial(0.0)
        self.assertEqual(len(d.targets), 6)
        self.assertEqual([t.index for t in d.targets], list(range(6)))
        self.assertEqual(sum(1 for t in d.targets if t.active), 1)
        self.assertTrue(d.targets[0].active)

    def test_hit_bonus_and_wraparound(self) -> None:
        d = _director("switch", "easy")
        d.spawn_initial(0.0)
        out = d.on_hit(d.active.id, 100.0)
        self.assertEqual(out.switch_ms, 100.0)
        self.assertEqual(out.bonus, 40)
        for i in range(3):
            d.switch_to_next(200.0 + i)
        self.assertEqual(d.active_index, 0)
        # slow switches earn nothing
        self.assertEqual(d.on_hit(d.active.id, 5000.0).bonus, 0)


class TrackTests(unittest.TestCase):
    def test_target_stays_on_canvas(self) -> None:
        for profile in MOTION_PROFILES:
            d = _director("track", "medium", overrides={"motionProfile": profile, "speed": 9.0})
            d.spawn_initial(0.0)
            for i in range(1, 1500):
                d.on_tick(i * 16.0)
                t = d.targets[0]
                self.assertTrue(t.hit_radius <= t.x <= 1280 - t.hit_radius, profile)
                self.assertTrue(t.hit_radius <= t.y <= 720 - t.hit_radius, profile)

    def test_chaotic_speed_is_clamped(self) -> None:
        d = _director("track", "extreme")
        d.spawn_initial(0.0)
        for i in range(1, 500):
            d.on_tick(i * 16.0)
            t = d.targets[0]
            self.assertLessEqual(math.hypot(t.vx, t.vy), d.speed + 1e-9)

    def _centred(self, profile: str):
        d = _director("track", "medium", overrides={"motionProfile": profile})
        d.spawn_initial(0.0)
        t = d.targets[0]
        t.x, t.y = 640.0, 360.0
        return d, t

    def test_curved_adds_sinusoidal_acceleration(self) -> None:
        d, t = self._centred("curved")
        vx0, vy0 = t.vx, t.vy
        d.on_tick(16.0)
        self.assertAlmostEqual(t.vx, vx0 + math.sin(0.016) * 0.5)
        self.assertAlmostEqual(t.vy, vy0 + math.cos(0.016) * 0.5)
        vx1 = t.vx
        d.on_tick(1000.0)
        self.assertAlmostEqual(t.vx, vx1 + math.sin(1.0) * 0.5)

    def test_erratic_only_changes_on_impulse(self) -> None:
        d, t = self._centred("erratic")
        vx0, vy0 = t.vx, t.vy
        d.rng = _FixedRandom(0.5)
        for i in range(1, 20):
            d.on_tick(i * 16.0)
            self.assertEqual((t.vx, t.vy), (vx0, vy0))
        d.rng = _FixedRandom(0.0)
        d.on_tick(400.0)
        self.assertAlmostEqual(t.vx, vx0 - 1.0)
        self.assertAlmostEqual(t.vy, vy0 - 1.0)

    def test_not_clickable_and_never_removed(self) -> None:
        d = _director("track")
        d.spawn_initial(0.0)
        self.assertFalse(d.clickable)
        d.on_hit(d.targets[0].id, 10.0)
        self.assertEqual(len(d.targets), 1)


class OrbitTests(unittest.TestCase):
    def test_orbits_centre(self) -> None:
        d = _director("calibration")
        d.spawn_initial(0.0)
        for i in range(1, 200):
            d.on_tick(i * 16.0)
            t = d.targets[0]
            self.assertAlmostEqual(distance(640, 360, t.x, t.y), 150.0, places=6)
        self.assertGreater(math.hypot(t.vx, t.vy), 0.0)


if __name__ == "__main__":
    unittest.main()
