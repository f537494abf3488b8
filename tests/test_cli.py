import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

os.environ.setdefault("MPLBACKEND", "Agg")

from aimtrainer.app.cli import main


def _run(argv):
    buf = io.StringIO()
    with redirect_stdout(buf):
        code = main(argv)
    return code, buf.getvalue()


class CliInfoTests(unittest.TestCase):
    def test_list_drills(self) -> None:
        code, out = _run(["list-drills"])
        self.assertEqual(code, 0)
        for drill in ("gridshot", "flick", "track", "switch", "calibration"):
            self.assertIn(drill, out)

    def test_show_params(self) -> None:
        code, out = _run(["show-params", "--drill", "flick"])
        self.assertEqual(code, 0)
        self.assertIn("minDistance", out)
        code, out = _run(["show-params", "--drill", "gridshot", "--difficulty", "hard", "--target-size", "tiny"])
        self.assertEqual(code, 0)
        self.assertIn("'targetSize': 15", out)

    def test_unknown_drill(self) -> None:
        code, out = _run(["show-params", "--drill", "bhop"])
        self.assertEqual(code, 2)
        self.assertIn("Unknown drill", out)
        code, _ = _run(["run", "--mode", "bhop", "--no-store"])
        self.assertEqual(code, 2)

    def test_profiles(self) -> None:
        code, out = _run(["profiles"])
        self.assertEqual(code, 0)
        self.assertIn("valorant", out)


class CliFlowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.root = Path(self.tmp.name)
        self.data = self.root / "data"
        self.cfg = self.root / "cfg.yml"
        self.cfg.write_text(
            "calibration:\n  duration_s: 1\nstorage:\n  data_dir: " + str(self.data) + "\n",
            encoding="utf-8",
        )

    def test_run_without_storage(self) -> None:
        code, out = _run(["run", "--no-store", "--mode", "switch", "--duration", "2"])
        self.assertEqual(code, 0)
        self.assertIn("Session Summary", out)

    def test_calibrate_needs_dpi(self) -> None:
        code, out = _run(["calibrate", "--no-store", "--config", str(self.cfg)])
        self.assertEqual(code, 2)
        self.assertIn("ERROR", out)

    def test_bad_replay(self) -> None:
        script = self.root / "bad.yml"
        script.write_text("- {t: 0, action: teleport}\n", encoding="utf-8")
        code, out = _run(["run", "--no-store", "--duration", "1", "--replay", str(script)])
        self.assertEqual(code, 2)
        self.assertIn("Cannot load replay script", out)

    def test_report_without_data(self) -> None:
        code, out = _run(["report", "--config", str(self.cfg)])
        self.assertEqual(code, 0)
        self.assertIn("No sessions stored", out)

    def test_full_flow(self) -> None:
        code, _ = _run(["run", "--config", str(self.cfg), "--mode", "gridshot", "--difficulty", "easy", "--duration", "3"])
        self.assertEqual(code, 0)

        code, out = _run(["calibrate", "--config", str(self.cfg), "--dpi", "800", "--sensitivity", "0.5", "--game", "valorant"])
        self.assertEqual(code, 0)
        self.assertEqual(out.count("cm/360="), 5)
        self.assertIn("Recommended DPI: 800", out)

        code, out = _run(["optimize", "--config", str(self.cfg), "--dpi", "800"])
        self.assertEqual(code, 0)
        self.assertIn("(5 runs)", out)

        plots = self.root / "plots"
        csv_path = self.root / "sessions.csv"
        nd_path = self.root / "sessions.ndjson"
        code, out = _run(
            [
                "report",
                "--config",
                str(self.cfg),
                "--plots",
                str(plots),
                "--export-csv",
                str(csv_path),
                "--export-ndjson",
                str(nd_path),
            ]
        )
        self.assertEqual(code, 0)
        self.assertIn("Training stats", out)
        self.assertIn("Complete More Sessions", out)
        for name in ("trend.png", "radar.png", "calibration.png"):
            self.assertTrue((plots / name).exists(), name)
        self.assertTrue(csv_path.exists())
        self.assertTrue(nd_path.exists())


if __name__ == "__main__":
    unittest.main()
