from __future__ import annotations

"""Game profile catalog.

Static lookup keyed by game id. Each profile carries the preferred cm/360 band,
the weights of the combined calibration score and the DPI band the game plays
well at. Config may add or override profiles; the built-ins are never mutated.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Range:
    min: float
    max: float

    @property
    def mid(self) -> float:
        return (self.min + self.max) / 2.0


@dataclass(frozen=True)
class TestWeights:
    accuracy: float
    reaction: float
    consistency: float

    __test__ = False


@dataclass(frozen=True)
class GameProfile:
    id: str
    name: str
    optimal_range: Range
    test_weights: TestWeights
    dpi_recommendation: Range


def _profile(gid: str, name: str, cm: tuple, w: tuple, dpi: tuple) -> GameProfile:
    return GameProfile(
        id=gid,
        name=name,
        optimal_range=Range(*cm),
        test_weights=TestWeights(*w),
        dpi_recommendation=Range(*dpi),
    )


GAME_PROFILES: Dict[str, GameProfile] = {
    "valorant": _profile("valorant", "Valorant", (30, 60), (0.5, 0.2, 0.3), (400, 1600)),
    "csgo": _profile("csgo", "Counter-Strike", (35, 60), (0.45, 0.25, 0.3), (400, 1600)),
    "apex": _profile("apex", "Apex Legends", (20, 40), (0.35, 0.3, 0.35), (800, 1600)),
    "overwatch": _profile("overwatch", "Overwatch", (20, 40), (0.35, 0.35, 0.3), (800, 1600)),
    "fortnite": _profile("fortnite", "Fortnite", (15, 35), (0.3, 0.4, 0.3), (800, 1600)),
    "default": _profile("default", "General FPS", (25, 45), (0.4, 0.3, 0.3), (400, 3200)),
}


def profile_from_dict(gid: str, data: Mapping[str, Any], base: Optional[GameProfile] = None) -> GameProfile:
    """Build a profile from a config mapping, filling gaps from `base`."""
    base = base or GAME_PROFILES["default"]
    cm = data.get("optimal_range", {}) or {}
    w = data.get("test_weights", {}) or {}
    dpi = data.get("dpi_recommendation", {}) or {}
    return GameProfile(
        id=gid,
        name=str(data.get("name", base.name if base.id == gid else gid)),
        optimal_range=Range(float(cm.get("min", base.optimal_range.min)), float(cm.get("max", base.optimal_range.max))),
        test_weights=TestWeights(
            float(w.get("accuracy", base.test_weights.accuracy)),
            float(w.get("reaction", base.test_weights.reaction)),
            float(w.get("consistency", base.test_weights.consistency)),
        ),
        dpi_recommendation=Range(float(dpi.get("min", base.dpi_recommendation.min)), float(dpi.get("max", base.dpi_recommendation.max))),
    )


def build_catalog(overrides: Optional[Mapping[str, Mapping[str, Any]]] = None) -> Dict[str, GameProfile]:
    catalog = dict(GAME_PROFILES)
    for gid, data in (overrides or {}).items():
        catalog[gid] = profile_from_dict(gid, data or {}, catalog.get(gid))
    return catalog


def get_profile(game: Optional[str], catalog: Optional[Mapping[str, GameProfile]] = None) -> GameProfile:
    catalog = catalog or GAME_PROFILES
    key = (game or "default").lower()
    if key not in catalog:
        print(f"WARNING: Unknown game profile '{game}', using 'default'.")
        key = "default"
    return catalog[key]
