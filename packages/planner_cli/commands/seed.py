"""Seed a development workspace with sample tasks."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace

import structlog
from sqlalchemy import select

from packages.planner.models import Task
from packages.planner.schemas import TaskCreateRequest
from packages.planner.service import PlannerDatabase, WorkspaceResolver, init_engine
from packages.planner.tasks import TaskService

from ..config import RuntimeConfig

__all__ = ["register", "run", "SAMPLE_TASKS"]

logger = structlog.get_logger(__name__)

DEFAULT_SEED_EMAIL = "test@example.com"

SAMPLE_TASKS: tuple[tuple[str, int], ...] = (
    ("Plan today's top 3 tasks", 1),
    ("Build Today view UI", 2),
    ("Add complete/uncomplete logic", 2),
)


def register(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser("seed", help="Create a workspace with sample tasks")
    parser.add_argument("--email", default=DEFAULT_SEED_EMAIL)
    parser.set_defaults(handler=run)


def run(args: Namespace, config: RuntimeConfig) -> None:
    email = getattr(args, "email", None) or DEFAULT_SEED_EMAIL
    database = PlannerDatabase(init_engine(config.settings))
    try:
        database.create_all()
        with database.session() as session:
            context = WorkspaceResolver(session).resolve(email)
            workspace_id = context.workspace.id
            existing = set(
                session.execute(
                    select(Task.title).where(Task.workspace_id == workspace_id)
                ).scalars()
            )
            service = TaskService(session)
            created = 0
            for title, priority in SAMPLE_TASKS:
                if title in existing:
                    continue
                service.create_task(
                    workspace_id,
                    TaskCreateRequest(title=title, priority=priority),
                    created_by_id=context.user.id,
                )
                created += 1
    finally:
        database.dispose()

    logger.info("seed_completed", workspace_id=workspace_id, created=created)
    print(f"Seeded {created} task(s) for {context.user.email}")
