"""Runtime configuration helpers shared by CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from packages.env import load_env
from packages.planner.service import PlannerSettings


@dataclass(frozen=True)
class RuntimeConfig:
    """Resolved configuration for command handlers."""

    settings: PlannerSettings
    log_level: str


def bootstrap() -> None:
    """Load environment variables once."""

    load_env()


def build_runtime_config(
    *, log_level: str, database_url: Optional[str] = None
) -> RuntimeConfig:
    """Construct a :class:`RuntimeConfig` honoring the ``--db-url`` override."""

    settings = PlannerSettings.from_env()
    if database_url:
        settings.database_url = database_url
    return RuntimeConfig(settings=settings, log_level=log_level)
