"""Top-level namespace for the planner service and its command-line tools."""

from __future__ import annotations

from .env import load_env

__all__ = ["load_env"]
