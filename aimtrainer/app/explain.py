from __future__ import annotations

"""Minimal tracing helpers (Explain Mode).

Enable with the `--explain` CLI flag to emit terse, one-line JSON traces at
session milestones: start, end, cancellation, submission failures.
"""

import json
from typing import Any, Dict

_ENABLED = False


def enable(flag: bool = True) -> None:
    global _ENABLED
    _ENABLED = bool(flag)


def enabled() -> bool:
    return _ENABLED


def trace(event: str, payload: Dict[str, Any] | None = None) -> None:
    if not _ENABLED:
        return
    data = payload or {}
    try:
        line = json.dumps(data, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        line = repr(data)
    print(f"[EXPLAIN] {event} :: {line}")
