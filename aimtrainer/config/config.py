from __future__ import annotations

"""Configuration loading and validation for AimTrainer.

This module loads YAML configuration, applies defaults, and validates
that enumerations and numeric ranges are sane for the CLI and engine.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

ALLOWED_MODES = {"gridshot", "flick", "track", "switch", "calibration"}
ALLOWED_DIFFICULTIES = {"easy", "medium", "hard", "extreme"}
ALLOWED_TARGET_SIZES = {"large", "medium", "small", "tiny"}
ALLOWED_CLICK_POLICIES = {"miss", "ignore"}
DEFAULT_MULTIPLIERS = [0.8, 0.9, 1.0, 1.1, 1.2]


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"ERROR: Config file is not valid YAML: {path}: {e}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"ERROR: Config file must contain a mapping: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        return _load_yaml(Path(path))
    return _load_yaml(Path(__file__).with_name("defaults.yml"))


def _positive(section: Dict[str, Any], key: str, default: float, *, name: str) -> None:
    try:
        value = float(section.get(key, default))
    except (TypeError, ValueError):
        value = -1.0
    if value <= 0:
        print(f"WARNING: {name}.{key} must be positive, using {default}.")
        section[key] = default


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Unknown enumeration values fall back to their default with a WARNING.
    Calibration DPI/sensitivity are left as given; the calibration flow
    itself rejects missing values.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.
    """
    # Shallow defaults for missing sections
    for section in ("canvas", "session", "scoring", "track", "calibration", "optimizer", "storage", "profiles"):
        if cfg.get(section) is None:
            cfg[section] = {}

    canvas = cfg["canvas"]
    session = cfg["session"]
    scoring = cfg["scoring"]
    track = cfg["track"]
    calib = cfg["calibration"]
    opt = cfg["optimizer"]
    storage = cfg["storage"]

    # Apply section defaults
    canvas.setdefault("width", 1280)
    canvas.setdefault("height", 720)
    canvas.setdefault("fps", 60)

    session.setdefault("mode", "gridshot")
    session.setdefault("difficulty", "medium")
    session.setdefault("duration_s", 60)
    session.setdefault("target_size", None)

    scoring.setdefault("base_points", 100)
    scoring.setdefault("reaction_bonus_window_ms", 500)
    scoring.setdefault("reaction_bonus_per_ms", 0.1)

    track.setdefault("click_policy", "miss")
    track.setdefault("dwell_increment", 0.1)

    calib.setdefault("dpi", None)
    calib.setdefault("sensitivity", None)
    calib.setdefault("duration_s", 30)
    calib.setdefault("multipliers", list(DEFAULT_MULTIPLIERS))
    calib.setdefault("orbit_radius", 150)
    calib.setdefault("angular_speed", 0.02)
    calib.setdefault("target_size", 50)

    opt.setdefault("game", "default")
    opt.setdefault("top_n", 5)
    opt.setdefault("min_runs", 2)

    storage.setdefault("enabled", True)
    storage.setdefault("data_dir", "storage/data")
    storage.setdefault("user", "local")
    storage.setdefault("jsonl_dir", None)

    # Enum validations
    mode = session.get("mode")
    if mode not in ALLOWED_MODES:
        print(f"WARNING: Unsupported mode '{mode}', using 'gridshot'.")
        session["mode"] = "gridshot"

    difficulty = session.get("difficulty")
    if difficulty not in ALLOWED_DIFFICULTIES:
        print(f"WARNING: Unsupported difficulty '{difficulty}', using 'medium'.")
        session["difficulty"] = "medium"

    size = session.get("target_size")
    if size is not None and size not in ALLOWED_TARGET_SIZES:
        print(f"WARNING: Unsupported target_size '{size}', using the difficulty default.")
        session["target_size"] = None

    policy = track.get("click_policy")
    if policy not in ALLOWED_CLICK_POLICIES:
        print(f"WARNING: Unsupported track click_policy '{policy}', using 'miss'.")
        track["click_policy"] = "miss"

    # Numeric sanity
    _positive(canvas, "width", 1280, name="canvas")
    _positive(canvas, "height", 720, name="canvas")
    _positive(canvas, "fps", 60, name="canvas")
    _positive(session, "duration_s", 60, name="session")
    _positive(calib, "duration_s", 30, name="calibration")
    _positive(calib, "orbit_radius", 150, name="calibration")
    _positive(calib, "angular_speed", 0.02, name="calibration")
    _positive(calib, "target_size", 50, name="calibration")
    _positive(opt, "top_n", 5, name="optimizer")
    _positive(opt, "min_runs", 2, name="optimizer")

    mults = calib.get("multipliers") or []
    try:
        mults = [float(m) for m in mults]
    except (TypeError, ValueError):
        mults = []
    if not mults or any(m <= 0 for m in mults):
        print("WARNING: calibration.multipliers must be positive numbers, using defaults.")
        mults = list(DEFAULT_MULTIPLIERS)
    calib["multipliers"] = mults

    if not isinstance(cfg["profiles"], dict):
        print("WARNING: profiles must be a mapping of game id -> profile, ignoring.")
        cfg["profiles"] = {}

    return cfg
