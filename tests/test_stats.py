import unittest

from aimtrainer.stats.stats import MetricsAggregator, accuracy_pct, consistency_pct, format_summary


class StatsHelperTests(unittest.TestCase):
    def test_accuracy(self) -> None:
        self.assertEqual(accuracy_pct(0, 0), 0.0)
        self.assertEqual(accuracy_pct(3, 4), 75.0)
        self.assertEqual(accuracy_pct(4, 4), 100.0)

    def test_consistency_bounds(self) -> None:
        self.assertEqual(consistency_pct([]), 0.0)
        self.assertEqual(consistency_pct([250.0]), 0.0)
        self.assertEqual(consistency_pct([300.0, 300.0]), 100.0)
        self.assertEqual(consistency_pct([0.0, 0.0]), 0.0)
        # population std of [100, 300] is 100, mean 200 -> 50%
        self.assertAlmostEqual(consistency_pct([100.0, 300.0]), 50.0)
        self.assertEqual(consistency_pct([1.0, 1000.0, 1.0]), 0.0)
        self.assertEqual(consistency_pct([5.0] * 9, min_samples=10), 0.0)


class AggregatorTests(unittest.TestCase):
    def _hit(self, agg: MetricsAggregator, t: float, rt: float, **kw) -> None:
        agg.record_hit(t, 10, 10, target_x=12, target_y=10, reaction_ms=rt, points=100, **kw)

    def test_shots_add_up_and_streaks(self) -> None:
        agg = MetricsAggregator("gridshot")
        self._hit(agg, 100, 200)
        self._hit(agg, 300, 250)
        agg.record_miss(400, 0, 0, 55.0)
        self._hit(agg, 500, 300)
        agg.record_expired(2)
        m = agg.finalize(elapsed_s=10, difficulty="easy", duration_s=10, target_size=60, targets_seen=6)
        self.assertEqual(m.total_shots, m.total_hits + m.total_misses)
        self.assertEqual((m.total_hits, m.total_misses, m.expired_targets), (3, 1, 2))
        self.assertEqual(m.streak_best, 2)
        self.assertAlmostEqual(m.accuracy_pct, 75.0)
        self.assertAlmostEqual(m.avg_reaction_ms, 250.0)
        self.assertAlmostEqual(m.kills_per_second, 0.3)
        self.assertEqual(m.score, 300)
        self.assertEqual(m.miss_positions[0]["nearestDistance"], 55.0)
        self.assertIsNone(m.tracking_accuracy_pct)
        self.assertIsNone(m.path_efficiency_pct)

    def test_mode_specific_lists(self) -> None:
        agg = MetricsAggregator("flick")
        self._hit(agg, 100, 200, flick_distance=420.0)
        m = agg.finalize(elapsed_s=1, difficulty="easy", duration_s=1, target_size=50)
        self.assertEqual(m.flick_distances, [420.0])
        self.assertEqual(m.hit_positions[0]["flickDistance"], 420.0)
        self.assertEqual(m.switch_speeds_ms, [])

    def test_summary_text(self) -> None:
        agg = MetricsAggregator("track")
        for _ in range(5):
            agg.record_dwell(True)
        agg.record_dwell(False)
        m = agg.finalize(elapsed_s=1, difficulty="medium", duration_s=1, target_size=40)
        self.assertAlmostEqual(m.tracking_accuracy_pct, 0.5)
        self.assertEqual(m.score, 5)
        text = format_summary(m)
        self.assertIn("Mode: track (medium)", text)
        self.assertIn("Tracking accuracy", text)


if __name__ == "__main__":
    unittest.main()
