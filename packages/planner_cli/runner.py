"""Command-line entry point for the planner service."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Callable, List, Optional

import structlog

from packages.planner.errors import PlannerError

from . import commands
from .config import RuntimeConfig, bootstrap, build_runtime_config

CommandHandler = Callable[[argparse.Namespace, RuntimeConfig], None]

LOG_FORMATS = ("kv", "json")

# The event name follows the level in key=value lines.
_KEY_ORDER = ["timestamp", "level", "event", "logger"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="planner",
        description="Command-line tools for the voice notes and tasks service.",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (CRITICAL, ERROR, WARNING, INFO, DEBUG). Default: INFO",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=os.getenv("LOG_FORMAT", "kv"),
        help="Log line format: key=value pairs or JSON (env: LOG_FORMAT)",
    )
    parser.add_argument(
        "--db-url",
        dest="database_url",
        help="Override the database URL (env: PLANNER_DB_URL or DATABASE_URL)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    commands.register(subparsers)
    return parser


def _build_renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.processors.KeyValueRenderer(
        key_order=_KEY_ORDER, sort_keys=True, drop_missing=True
    )


def configure_logging(level_name: str, log_format: str = "kv") -> None:
    """Route structlog and stdlib records through one stderr handler."""

    level_value = getattr(logging, level_name.upper(), logging.INFO)
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _build_renderer(log_format),
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level_value)

    logging.basicConfig(level=level_value, handlers=[handler], force=True)
    # Statement-level SQL logging stays off.
    logging.getLogger("sqlalchemy.engine").setLevel(max(level_value, logging.WARNING))


def main(argv: Optional[List[str]] = None) -> None:
    bootstrap()
    parser = build_parser()
    args = parser.parse_args(argv)

    level_name = str(getattr(args, "log_level", "INFO")).upper()
    configure_logging(level_name, getattr(args, "log_format", "kv"))

    handler: CommandHandler = getattr(args, "handler", None)
    if not callable(handler):
        parser.error("Command handler missing")

    try:
        runtime = build_runtime_config(
            log_level=level_name,
            database_url=getattr(args, "database_url", None),
        )
        handler(args, runtime)
    except PlannerError as exc:
        raise SystemExit(f"error: {exc.message}") from exc


if __name__ == "__main__":  # pragma: no cover
    main()
