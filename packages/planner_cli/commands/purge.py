"""Delete soft-deleted tasks past the retention window."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace

from packages.planner.retention import purge_deleted_tasks
from packages.planner.service import PlannerDatabase, init_engine

from ..config import RuntimeConfig

__all__ = ["register", "run"]


def register(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "purge-deleted", help="Hard-delete tasks soft-deleted before the retention window"
    )
    parser.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help="Override PLANNER_TASK_RETENTION_DAYS (default: 30)",
    )
    parser.set_defaults(handler=run)


def run(args: Namespace, config: RuntimeConfig) -> None:
    retention_days = getattr(args, "retention_days", None)
    if retention_days is None:
        retention_days = config.settings.retention_days
    if retention_days < 0:
        raise SystemExit("--retention-days must not be negative")

    database = PlannerDatabase(init_engine(config.settings))
    try:
        database.create_all()
        with database.session() as session:
            deleted = purge_deleted_tasks(session, retention_days=retention_days)
    finally:
        database.dispose()
    print(f"Purged {deleted} task(s)")
