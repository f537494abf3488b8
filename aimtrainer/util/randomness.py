from __future__ import annotations

"""Randomness helpers for target placement and seeding."""

import os
import random
from typing import Optional

import numpy as np


def seed_if_needed() -> Optional[int]:
    """Seed RNGs if SEED env var is set. Returns the seed that was applied."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        s = int(seed)
    except ValueError:
        print(f"[WARN] Ignoring non-integer SEED={seed!r}")
        return None
    random.seed(s)
    np.random.seed(s)
    return s


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Private RNG for one session so directors never share global state."""
    if seed is None:
        seed = seed_if_needed()
    return random.Random(seed)
