import os
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

os.environ.setdefault("MPLBACKEND", "Agg")

import pandas as pd

from analytics import (
    AnalyticsConfig,
    aggregate_heatmap,
    compute_metrics,
    ewma_by_session,
    generate_insights,
    performance_rank,
    plot_calibration,
    plot_hit_heatmap,
    plot_session_radar,
    plot_trend,
    prepare_frame,
    radar_values,
    recommendations,
    training_stats,
)
from storage.schema import ShotEventRow, TrainingResultRow
from storage.store import validate_results, validate_shot_events

START = datetime(2026, 2, 1, 18, 0, tzinfo=timezone.utc)


def _row(i: int, *, mode: str = "gridshot", score: int = 1000, accuracy: float = 80.0, rt: float = 350.0, **kw) -> TrainingResultRow:
    base = dict(
        session_id=f"s{i:03d}",
        session_start=START + timedelta(days=i),
        mode=mode,
        difficulty="medium",
        duration_s=60,
        target_size=45,
        score=score,
        accuracy=accuracy,
        total_shots=10,
        total_hits=8,
        total_misses=2,
        avg_reaction_ms=rt,
        kills_per_second=0.5,
        consistency=70,
        streak_best=5,
    )
    base.update(kw)
    return TrainingResultRow(**base)


def _frame(rows) -> pd.DataFrame:
    return prepare_frame(validate_results(rows), AnalyticsConfig())


class MetricsTests(unittest.TestCase):
    def test_compute_metrics_columns(self) -> None:
        df = _frame([_row(0), _row(1, mode="track", total_shots=0, total_hits=0, total_misses=0, streak_best=0, tracking_accuracy=60.0)])
        for col in ("acc", "reaction_score", "combined_score", "rt_factor", "mark", "session_idx", "hour"):
            self.assertIn(col, df.columns)
        grid, track = df.iloc[0], df.iloc[1]
        self.assertAlmostEqual(float(grid["acc"]), 0.8, places=5)
        self.assertAlmostEqual(float(grid["reaction_score"]), 65.0, places=3)
        self.assertAlmostEqual(float(track["mark"]), 0.6, places=5)
        self.assertEqual(list(df["session_idx"]), [0, 1])
        self.assertEqual(int(grid["hour"]), 18)

    def test_compute_metrics_does_not_mutate(self) -> None:
        raw = validate_results([_row(0)])
        compute_metrics(raw, AnalyticsConfig())
        self.assertNotIn("mark", raw.columns)

    def test_ewma_per_mode(self) -> None:
        df = _frame([_row(i, score=100 * (i + 1)) for i in range(4)] + [_row(10, mode="flick", score=5)])
        out = ewma_by_session(df, "score", span=3)
        flick = out[out["mode"].astype("string") == "flick"]
        self.assertAlmostEqual(float(flick["score_smooth"].iloc[0]), 5.0)
        self.assertEqual(len(out), 5)


class InsightTests(unittest.TestCase):
    def test_rank_tiers(self) -> None:
        self.assertEqual(performance_rank(92, 280).name, "Pro Level")
        self.assertEqual(performance_rank(92, 350).name, "Advanced")
        self.assertEqual(performance_rank(75, 450).percentile, 60)
        self.assertEqual(performance_rank(65, 900).name, "Improving")
        self.assertEqual(performance_rank(40, 200).name, "Beginner")

    def test_insights_need_history(self) -> None:
        cfg = AnalyticsConfig()
        self.assertEqual(generate_insights(_frame([_row(i) for i in range(4)]), cfg), [])
        recs = recommendations(_frame([_row(0)]), cfg)
        self.assertEqual(recs[0]["type"], "getting_started")

    def test_improvement_trend(self) -> None:
        rows = [_row(i, score=1000) for i in range(10)] + [_row(10 + i, score=1300) for i in range(10)]
        insights = {i.type: i for i in generate_insights(_frame(rows), AnalyticsConfig())}
        self.assertEqual(insights["trend"].severity, "positive")
        self.assertAlmostEqual(insights["trend"].value, 30.0)
        self.assertIn("consistency", insights)
        self.assertEqual(insights["timing"].value, 18)

    def test_accuracy_speed_tradeoff(self) -> None:
        rows = [_row(i, accuracy=90, rt=500) for i in range(4)] + [_row(4 + i, accuracy=60, rt=300) for i in range(4)]
        types = [i.type for i in generate_insights(_frame(rows), AnalyticsConfig())]
        self.assertIn("accuracy_speed", types)

    def test_recommendations(self) -> None:
        rows = [_row(i, accuracy=60, score=2000) for i in range(5)]
        rows += [_row(5 + i, mode="flick", accuracy=60, score=500) for i in range(5)]
        types = [r["type"] for r in recommendations(_frame(rows), AnalyticsConfig())]
        self.assertEqual(types, ["accuracy", "consistency", "skill_area"])

    def test_training_stats(self) -> None:
        stats = training_stats(_frame([_row(0, score=500), _row(1, score=700), _row(2, mode="switch", score=300)]))
        grid = stats[stats["mode"].astype("string") == "gridshot"].iloc[0]
        self.assertEqual(int(grid["sessions"]), 2)
        self.assertEqual(float(grid["avg_score"]), 600.0)
        self.assertEqual(int(grid["best_score"]), 700)

    def test_radar_values(self) -> None:
        vals = radar_values({"accuracy": 80, "kills_per_second": 6, "avg_reaction_ms": 250, "consistency": 50, "score": 2500})
        self.assertEqual(vals, [0.8, 1.0, 0.75, 0.5, 0.5])


class HeatmapTests(unittest.TestCase):
    def _shots(self) -> pd.DataFrame:
        start = START
        rows = [
            ShotEventRow(session_id="a", session_start=start, mode="gridshot", seq=0, kind="hit", t_ms=100, x=10, y=10, reaction_ms=200),
            ShotEventRow(session_id="a", session_start=start, mode="gridshot", seq=1, kind="miss", t_ms=300, x=1270, y=710),
            ShotEventRow(session_id="b", session_start=start, mode="flick", seq=0, kind="hit", t_ms=50, x=640, y=360, reaction_ms=300),
        ]
        return validate_shot_events(rows)

    def test_counts(self) -> None:
        heat = aggregate_heatmap(self._shots())
        self.assertEqual(heat["total_hits"], 2)
        self.assertEqual(heat["total_misses"], 1)
        self.assertEqual(int(heat["hits"].sum()), 2)
        self.assertEqual(heat["hits"].shape, (32, 18))
        self.assertEqual(heat["sessions"], 2)
        only_flick = aggregate_heatmap(self._shots(), mode="flick")
        self.assertEqual(only_flick["total_misses"], 0)
        self.assertEqual(int(only_flick["misses"].sum()), 0)


class PlotTests(unittest.TestCase):
    def test_plots_write_files(self) -> None:
        df = ewma_by_session(_frame([_row(i, score=900 + 10 * i) for i in range(6)]), "score", span=3)
        heat = aggregate_heatmap(HeatmapTests()._shots())
        calib = pd.DataFrame({"cm_per_360": [25.0, 30.0, 35.0], "accuracy_pct": [70.0, 80.0, 75.0]})
        with tempfile.TemporaryDirectory() as td:
            out = Path(td)
            plot_trend(df, mode="gridshot", save_path=out / "trend.png")
            plot_session_radar(df.tail(1), save_path=out / "radar.png")
            plot_hit_heatmap(heat, save_path=out / "heat.png")
            plot_calibration(calib, scores=[60.0, 72.0, 65.0], optimal_range=(25, 45), save_path=out / "calib.png")
            for name in ("trend.png", "radar.png", "heat.png", "calib.png"):
                self.assertTrue((out / name).exists(), name)
            # nothing to draw: no file, no error
            plot_trend(df, mode="flick", save_path=out / "empty.png")
            self.assertFalse((out / "empty.png").exists())


if __name__ == "__main__":
    unittest.main()
