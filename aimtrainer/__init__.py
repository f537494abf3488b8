"""AimTrainer package initialization.

Importing `aimtrainer` only exposes the version; the engine, optimizer and
CLI live in their own subpackages.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
