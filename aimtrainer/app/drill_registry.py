from __future__ import annotations

"""Drill registry and metadata.

Expose drill metadata, resolve difficulty presets and target-size overrides,
and construct the director for a mode once at session start.
"""

import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..drills.base_director import BaseDirector
from ..drills.flick import FlickDirector
from ..drills.gridshot import GridshotDirector
from ..drills.orbit import OrbitDirector
from ..drills.switch import SwitchDirector
from ..drills.track import MOTION_PROFILES, TrackDirector
from ..util.geometry import Canvas
from .presets import (
    CALIBRATION_PRESETS,
    DIFFICULTIES,
    FLICK_PRESETS,
    GRIDSHOT_PRESETS,
    SWITCH_PRESETS,
    TARGET_SIZES,
    TRACK_PRESETS,
)


class UnknownModeError(KeyError):
    pass


@dataclass(frozen=True)
class DrillMeta:
    id: str
    name: str
    description: str
    parameters_schema: Dict[str, Any]
    presets: Dict[str, Dict[str, Any]]


_SIZE_PROP = {"type": "number", "exclusiveMinimum": 0}
_MS_PROP = {"type": "number", "minimum": 0}

_DRILLS: List[DrillMeta] = [
    DrillMeta(
        id="gridshot",
        name="Gridshot",
        description="Static, randomly placed targets that expire if not hit in time.",
        parameters_schema={
            "type": "object",
            "properties": {
                "targetSize": _SIZE_PROP,
                "spawnRate": _MS_PROP,
                "targetLifetime": _MS_PROP,
                "maxTargets": {"type": "integer", "minimum": 1},
            },
            "required": ["targetSize", "spawnRate", "targetLifetime", "maxTargets"],
        },
        presets=GRIDSHOT_PRESETS,
    ),
    DrillMeta(
        id="flick",
        name="Flick",
        description="One distant target at a time; rewards long, fast traversals.",
        parameters_schema={
            "type": "object",
            "properties": {
                "targetSize": _SIZE_PROP,
                "minDistance": _MS_PROP,
                "targetLifetime": _MS_PROP,
            },
            "required": ["targetSize", "minDistance"],
        },
        presets=FLICK_PRESETS,
    ),
    DrillMeta(
        id="track",
        name="Track",
        description="Keep the cursor on a continuously moving target.",
        parameters_schema={
            "type": "object",
            "properties": {
                "targetSize": _SIZE_PROP,
                "speed": _SIZE_PROP,
                "motionProfile": {"type": "string", "enum": list(MOTION_PROFILES)},
            },
            "required": ["targetSize", "speed", "motionProfile"],
        },
        presets=TRACK_PRESETS,
    ),
    DrillMeta(
        id="switch",
        name="Target Switch",
        description="Several targets on screen; only the highlighted one counts.",
        parameters_schema={
            "type": "object",
            "properties": {
                "targetSize": _SIZE_PROP,
                "switchRate": _MS_PROP,
                "totalTargets": {"type": "integer", "minimum": 1},
                "maxDistance": _MS_PROP,
            },
            "required": ["targetSize", "switchRate", "totalTargets", "maxDistance"],
        },
        presets=SWITCH_PRESETS,
    ),
    DrillMeta(
        id="calibration",
        name="Sensitivity Calibration",
        description="Track an orbiting target across a DPI/sensitivity sweep.",
        parameters_schema={
            "type": "object",
            "properties": {
                "targetSize": _SIZE_PROP,
                "orbitRadius": _SIZE_PROP,
                "angularSpeed": _SIZE_PROP,
            },
            "required": ["targetSize"],
        },
        presets=CALIBRATION_PRESETS,
    ),
]

_FACTORIES: Dict[str, Callable[..., BaseDirector]] = {
    "gridshot": GridshotDirector,
    "flick": FlickDirector,
    "track": TrackDirector,
    "switch": SwitchDirector,
    "calibration": OrbitDirector,
}


def list_drills() -> List[DrillMeta]:
    return list(_DRILLS)


def get_drill(mode: str) -> DrillMeta:
    for m in _DRILLS:
        if m.id == mode:
            return m
    raise UnknownModeError(f"Unknown drill id: {mode}")


def resolve_params(
    mode: str,
    difficulty: str,
    *,
    target_size: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Preset for (mode, difficulty) -> size override -> explicit overrides."""
    meta = get_drill(mode)
    if difficulty not in meta.presets:
        print(f"WARNING: Unsupported difficulty '{difficulty}', using 'medium'.")
        difficulty = "medium"
    params = dict(meta.presets[difficulty])
    if target_size:
        if target_size in TARGET_SIZES:
            params["targetSize"] = TARGET_SIZES[target_size]
        else:
            print(f"WARNING: Unsupported target size '{target_size}', keeping {params['targetSize']}px.")
    params.update(overrides or {})
    return params


def make_director(
    mode: str,
    *,
    difficulty: str = "medium",
    canvas: Optional[Canvas] = None,
    rng: Optional[random.Random] = None,
    target_size: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> BaseDirector:
    """Factory that builds the concrete director with resolved params."""
    if mode not in _FACTORIES:
        raise UnknownModeError(f"Unknown drill id: {mode}")
    params = resolve_params(mode, difficulty, target_size=target_size, overrides=overrides)
    return _FACTORIES[mode](canvas or Canvas(), params, rng or random.Random())


__all__ = [
    "DIFFICULTIES",
    "DrillMeta",
    "UnknownModeError",
    "get_drill",
    "list_drills",
    "make_director",
    "resolve_params",
]
