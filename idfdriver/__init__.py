"""ESP-IDF project build driver with consistent build generator selection."""
from __future__ import annotations

from .cli import main

__all__ = ["main"]
