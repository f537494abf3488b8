from __future__ import annotations

"""CLI for AimTrainer using SessionManager and DrillRegistry."""

import argparse
import random
from pathlib import Path
from typing import Any, Dict

from .. import __version__
from ..config.config import load_config, validate_config
from ..engine.calibration import ConfigurationMissingError, SweepStep
from ..optimizer.profiles import build_catalog
from ..optimizer.sensitivity import combined_score
from ..stats.stats import format_summary
from ..util.randomness import make_rng, seed_if_needed

from .autopilot import Autopilot
from .drill_registry import UnknownModeError, get_drill, list_drills, resolve_params
from .replay import ReplayDriver, load_script
from .session_manager import SessionManager


def _load_cfg(args: argparse.Namespace) -> Dict[str, Any]:
    cfg = validate_config(load_config(getattr(args, "config", None)))
    if getattr(args, "data_dir", None):
        cfg["storage"]["data_dir"] = args.data_dir
    if getattr(args, "no_store", False):
        cfg["storage"]["enabled"] = False
        cfg["storage"]["jsonl_dir"] = None
    return cfg


def _enable_explain(args: argparse.Namespace) -> None:
    if getattr(args, "explain", False):
        from .explain import enable as explain_enable
        explain_enable(True)


def _print_optimization(res) -> None:
    print(f"Recommended DPI: {res.dpi}")
    print(f"Recommended sensitivity: {res.sensitivity}")
    print(f"cm/360: {res.cm_per_360:.2f}")
    print(f"Confidence: {res.confidence_pct:.1f}% ({res.runs_considered} runs)")
    print(f"Mousepad: {res.mousepad_recommendation}")
    for line in res.reasoning:
        print(f"  - {line}")


def _cmd_run(args: argparse.Namespace) -> int:
    seed = seed_if_needed()
    _enable_explain(args)
    cfg = _load_cfg(args)
    rng = make_rng(seed)
    sm = SessionManager(cfg, rng=rng)
    try:
        sm.start_session(args.mode, args.difficulty, target_size=args.target_size, duration_s=args.duration)
    except UnknownModeError as e:
        print(f"Unknown drill: {e}")
        return 2
    if args.replay:
        try:
            driver = ReplayDriver(load_script(args.replay))
        except (OSError, ValueError) as e:
            print(f"Cannot load replay script '{args.replay}': {e}")
            return 2
    else:
        driver = Autopilot(random.Random(rng.random()), skill=args.skill)
    metrics = sm.run(driver, realtime=args.realtime)
    if metrics is None:
        print("Session cancelled; nothing was recorded.")
        return 0
    print("\nSession Summary:")
    print(format_summary(metrics))
    return 0


def _cmd_calibrate(args: argparse.Namespace) -> int:
    seed = seed_if_needed()
    _enable_explain(args)
    cfg = _load_cfg(args)
    rng = make_rng(seed)
    sm = SessionManager(cfg, rng=rng)
    calib = cfg["calibration"]
    dpi = args.dpi if args.dpi is not None else calib.get("dpi")
    sens = args.sensitivity if args.sensitivity is not None else calib.get("sensitivity")
    try:
        base_edpi = float(dpi) * float(sens)
    except (TypeError, ValueError):
        base_edpi = 0.0

    def driver_for(step: SweepStep) -> Autopilot:
        # Faster effective sensitivity moves the simulated hand further per frame
        scale = step.dpi * step.sensitivity / base_edpi if base_edpi > 0 else 1.0
        return Autopilot(random.Random(rng.random()), skill=args.skill, speed_scale=scale, click=False)

    try:
        session = sm.calibrate(driver_for, dpi=dpi, sensitivity=sens, realtime=args.realtime)
    except ConfigurationMissingError as e:
        print(f"ERROR: {e}. Set calibration.dpi/sensitivity in the config or pass --dpi/--sensitivity.")
        return 2

    print("\nCalibration runs:")
    for run in session.runs:
        print(
            f"  dpi={run.dpi:<5} sens={run.sensitivity:<6} cm/360={run.cm_per_360:6.2f} "
            f"acc={run.accuracy_pct:5.1f}% cons={run.consistency_pct:5.1f}% "
            f"eff={run.path_efficiency_pct:5.1f}% smooth={run.movement_smoothness_pct:5.1f}%"
        )
    best = session.best_run()
    if best is not None:
        print(f"Best of this sweep: dpi={best.dpi} sens={best.sensitivity} ({best.cm_per_360:.2f} cm/360)")
    if args.game:
        print()
        _print_optimization(sm.recommend(args.game, int(float(dpi)), runs=list(session.runs)))
    return 0


def _cmd_optimize(args: argparse.Namespace) -> int:
    _enable_explain(args)
    cfg = _load_cfg(args)
    sm = SessionManager(cfg, sinks=[])
    _print_optimization(sm.recommend(args.game, args.dpi))
    return 0


def _cmd_report(args: argparse.Namespace) -> int:
    # Analytics pulls in matplotlib; keep it off the drill path
    from analytics import (
        AnalyticsConfig,
        aggregate_heatmap,
        ewma_by_session,
        generate_insights,
        load_and_prepare,
        performance_rank,
        plot_calibration,
        plot_hit_heatmap,
        plot_session_radar,
        plot_trend,
        recommendations,
        training_stats,
    )
    from storage.store import export_csv, export_ndjson, load_calibration_runs, load_shot_events, personal_bests

    from ..optimizer.profiles import get_profile
    from ..results.result_manager import calibration_runs_from_frame

    cfg = _load_cfg(args)
    data_dir = Path(cfg["storage"]["data_dir"])
    user = str(cfg["storage"]["user"])
    acfg = AnalyticsConfig()
    df = load_and_prepare(data_dir, acfg, user_id=user)
    if args.mode:
        df = df[df["mode"].astype("string") == args.mode]
    if df.empty:
        print(f"No sessions stored under {data_dir}.")
        return 0
    df = ewma_by_session(df, "score", acfg.smoothing_span)

    print("Training stats:")
    print(training_stats(df).to_string(index=False))
    print("\nPersonal bests:")
    print(personal_bests(df).to_string(index=False))

    with_hits = df[df["total_hits"] > 0]
    if not with_hits.empty:
        rank = performance_rank(float(with_hits["accuracy"].mean()), float(with_hits["avg_reaction_ms"].mean()))
        print(f"\nRank: {rank.name} (top {100 - rank.percentile}%)")

    insights = generate_insights(df, acfg)
    if insights:
        print("\nInsights:")
        for ins in insights:
            print(f"  [{ins.severity}] {ins.title}: {ins.description}")
    print("\nRecommendations:")
    for rec in recommendations(df, acfg):
        print(f"  ({rec['priority']}) {rec['title']}: {rec['action']}")

    if args.plots:
        out = Path(args.plots)
        out.mkdir(parents=True, exist_ok=True)
        plot_trend(df, mode=args.mode, difficulty=args.difficulty, save_path=out / "trend.png")
        plot_session_radar(df.groupby("mode", observed=True).tail(1), save_path=out / "radar.png")
        heat = aggregate_heatmap(
            load_shot_events(data_dir),
            canvas=(float(cfg["canvas"]["width"]), float(cfg["canvas"]["height"])),
            mode=args.mode,
        )
        plot_hit_heatmap(heat, layer="hits", save_path=out / "heatmap_hits.png")
        plot_hit_heatmap(heat, layer="misses", save_path=out / "heatmap_misses.png")
        calib_df = load_calibration_runs(data_dir, user_id=user)
        if not calib_df.empty:
            profile = get_profile(args.game or cfg["optimizer"]["game"], build_catalog(cfg["profiles"]))
            scores = [combined_score(r, profile) for r in calibration_runs_from_frame(calib_df)]
            opt_range = (profile.optimal_range.min, profile.optimal_range.max)
            plot_calibration(calib_df, scores=scores, optimal_range=opt_range, save_path=out / "calibration.png")
        print(f"\nPlots written to {out}")

    if args.export_csv:
        export_csv(df, Path(args.export_csv))
        print(f"Exported {len(df)} sessions to {args.export_csv}")
    if args.export_ndjson:
        export_ndjson(df, Path(args.export_ndjson))
        print(f"Exported {len(df)} sessions to {args.export_ndjson}")
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="aimtrainer")
    p.add_argument("--version", action="version", version=f"aimtrainer {__version__}")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list-drills")

    sp = sub.add_parser("show-params")
    sp.add_argument("--drill", required=True)
    sp.add_argument("--difficulty", default=None)
    sp.add_argument("--target-size", dest="target_size", default=None)

    sub.add_parser("profiles")

    rp = sub.add_parser("run")
    rp.add_argument("--config", default=None)
    rp.add_argument("--mode", default=None)
    rp.add_argument("--difficulty", default=None)
    rp.add_argument("--target-size", dest="target_size", default=None, help="large | medium | small | tiny")
    rp.add_argument("--duration", type=float, default=None, help="Session length in seconds")
    rp.add_argument("--replay", default=None, help="YAML/JSON input script; autopilot when omitted")
    rp.add_argument("--skill", type=float, default=0.7, help="Autopilot skill 0..1")
    rp.add_argument("--realtime", action="store_true", help="Pace frames with the wall clock")
    rp.add_argument("--data-dir", dest="data_dir", default=None)
    rp.add_argument("--no-store", dest="no_store", action="store_true")
    rp.add_argument("--explain", action="store_true")

    cp = sub.add_parser("calibrate")
    cp.add_argument("--config", default=None)
    cp.add_argument("--dpi", type=int, default=None)
    cp.add_argument("--sensitivity", type=float, default=None)
    cp.add_argument("--game", default=None, help="Also print a recommendation for this game profile")
    cp.add_argument("--skill", type=float, default=0.7)
    cp.add_argument("--realtime", action="store_true")
    cp.add_argument("--data-dir", dest="data_dir", default=None)
    cp.add_argument("--no-store", dest="no_store", action="store_true")
    cp.add_argument("--explain", action="store_true")

    op = sub.add_parser("optimize")
    op.add_argument("--config", default=None)
    op.add_argument("--game", default=None)
    op.add_argument("--dpi", type=int, default=None)
    op.add_argument("--data-dir", dest="data_dir", default=None)
    op.add_argument("--explain", action="store_true")

    rep = sub.add_parser("report")
    rep.add_argument("--config", default=None)
    rep.add_argument("--data-dir", dest="data_dir", default=None)
    rep.add_argument("--mode", default=None)
    rep.add_argument("--difficulty", default=None)
    rep.add_argument("--game", default=None)
    rep.add_argument("--plots", default=None, help="Directory to write PNG plots into")
    rep.add_argument("--export-csv", dest="export_csv", default=None)
    rep.add_argument("--export-ndjson", dest="export_ndjson", default=None)

    args = p.parse_args(argv)

    if args.cmd == "list-drills":
        for m in list_drills():
            print(f"{m.id}: {m.name} - {m.description} | difficulties: {', '.join(m.presets.keys())}")
        return 0

    if args.cmd == "show-params":
        try:
            m = get_drill(args.drill)
        except UnknownModeError as e:
            print(f"Unknown drill: {e}")
            return 2
        print(f"Drill {m.id}: {m.name}")
        if args.difficulty or args.target_size:
            params = resolve_params(m.id, args.difficulty or "medium", target_size=args.target_size)
            print(f"Resolved: {params}")
            return 0
        print("Presets:")
        for name, params in m.presets.items():
            print(f"  - {name}: {params}")
        return 0

    if args.cmd == "profiles":
        for gid, prof in build_catalog(validate_config(load_config())["profiles"]).items():
            w = prof.test_weights
            print(
                f"{gid}: {prof.name} | cm/360 {prof.optimal_range.min:.0f}-{prof.optimal_range.max:.0f} | "
                f"weights acc={w.accuracy} rt={w.reaction} cons={w.consistency} | "
                f"dpi {prof.dpi_recommendation.min:.0f}-{prof.dpi_recommendation.max:.0f}"
            )
        return 0

    if args.cmd == "run":
        return _cmd_run(args)
    if args.cmd == "calibrate":
        return _cmd_calibrate(args)
    if args.cmd == "optimize":
        return _cmd_optimize(args)
    if args.cmd == "report":
        return _cmd_report(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
