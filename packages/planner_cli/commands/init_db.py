"""Create database tables."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace

import structlog

from packages.planner.service import PlannerDatabase, init_engine

from ..config import RuntimeConfig

__all__ = ["register", "run"]

logger = structlog.get_logger(__name__)


def register(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser("init-db", help="Create planner tables if missing")
    parser.set_defaults(handler=run)


def run(args: Namespace, config: RuntimeConfig) -> None:
    database = PlannerDatabase(init_engine(config.settings))
    try:
        database.create_all()
    finally:
        database.dispose()
    logger.info("database_initialized")
    print("Database ready")
