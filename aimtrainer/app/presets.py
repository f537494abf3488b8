from __future__ import annotations

"""Curated difficulty presets per drill.

Each drill maps difficulty -> parameter dict. `targetSize` is a diameter in px,
all times are in ms, track `speed` is px per tick.
"""

DIFFICULTIES = ("easy", "medium", "hard", "extreme")

TARGET_SIZES = {
    "large": 60,
    "medium": 40,
    "small": 25,
    "tiny": 15,
}

GRIDSHOT_PRESETS = {
    "easy": {"targetSize": 60, "spawnRate": 800, "targetLifetime": 2500, "maxTargets": 3},
    "medium": {"targetSize": 45, "spawnRate": 600, "targetLifetime": 2000, "maxTargets": 4},
    "hard": {"targetSize": 30, "spawnRate": 400, "targetLifetime": 1500, "maxTargets": 5},
    "extreme": {"targetSize": 20, "spawnRate": 300, "targetLifetime": 1200, "maxTargets": 6},
}

FLICK_PRESETS = {
    "easy": {"targetSize": 50, "minDistance": 300, "targetLifetime": 3000},
    "medium": {"targetSize": 35, "minDistance": 400, "targetLifetime": 3000},
    "hard": {"targetSize": 25, "minDistance": 500, "targetLifetime": 3000},
    "extreme": {"targetSize": 18, "minDistance": 600, "targetLifetime": 3000},
}

TRACK_PRESETS = {
    "easy": {"targetSize": 50, "speed": 2.0, "motionProfile": "linear"},
    "medium": {"targetSize": 40, "speed": 3.5, "motionProfile": "curved"},
    "hard": {"targetSize": 30, "speed": 5.0, "motionProfile": "erratic"},
    "extreme": {"targetSize": 22, "speed": 7.0, "motionProfile": "chaotic"},
}

SWITCH_PRESETS = {
    "easy": {"targetSize": 45, "switchRate": 1500, "totalTargets": 4, "maxDistance": 300},
    "medium": {"targetSize": 35, "switchRate": 1200, "totalTargets": 5, "maxDistance": 400},
    "hard": {"targetSize": 25, "switchRate": 900, "totalTargets": 6, "maxDistance": 500},
    "extreme": {"targetSize": 18, "switchRate": 600, "totalTargets": 8, "maxDistance": 600},
}

# Orbit target used by the calibration sweep; difficulty does not change it.
CALIBRATION_PRESETS = {
    d: {"targetSize": 50, "orbitRadius": 150, "angularSpeed": 0.02}
    for d in DIFFICULTIES
}
