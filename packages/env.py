"""Helpers for loading `.env` files for the planner service and CLI."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Union

from dotenv import find_dotenv, load_dotenv

PathLike = Union[str, Path]
_LOADED = False

ENV_FILE_VARIABLE = "PLANNER_ENV_FILE"


def _candidate_paths(extra_paths: Iterable[PathLike] | None) -> list[Path]:
    candidates: list[Path] = []
    explicit = os.getenv(ENV_FILE_VARIABLE)
    if explicit:
        candidates.append(Path(explicit).expanduser())
    for raw_path in extra_paths or ():
        candidates.append(Path(raw_path).expanduser())
    found = find_dotenv(usecwd=True)
    if found:
        candidates.append(Path(found))
    candidates.append(Path(__file__).resolve().parent.parent / ".env")
    return candidates


def load_env(*, override: bool = False, extra_paths: Iterable[PathLike] | None = None) -> bool:
    """Load environment variables from `.env` files if they exist.

    Files are read in order: ``$PLANNER_ENV_FILE``, ``extra_paths``, the
    nearest ``.env`` above the working directory, then the repository root.
    Variables already set win unless ``override`` is true.

    Returns:
        ``True`` if any environment file was successfully loaded.
    """

    global _LOADED

    if _LOADED and not override and extra_paths is None:
        return True

    loaded_any = False
    seen: set[Path] = set()
    for path in _candidate_paths(extra_paths):
        if not path.exists():
            continue
        resolved = path.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        loaded_any = load_dotenv(resolved, override=override) or loaded_any

    if not override:
        _LOADED = True

    return loaded_any
