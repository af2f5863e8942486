"""Task lifecycle: creation, edits, status transitions and pinning."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import schemas
from .errors import ConflictError, NotFoundError, ValidationError
from .models import ItemStatus, Task, utcnow
from .schema.enums import ITEM_STATUS

__all__ = [
    "TaskService",
    "VALID_PRIORITIES",
    "DEFAULT_PRIORITY",
    "DEFAULT_LIST_STATUSES",
    "parse_due_date",
    "parse_priority",
    "parse_item_status",
]

logger = structlog.get_logger(__name__)

VALID_PRIORITIES = frozenset({1, 2, 3})
DEFAULT_PRIORITY = 2
# Trash is only listed when asked for explicitly.
DEFAULT_LIST_STATUSES = (ItemStatus.ACTIVE, ItemStatus.ARCHIVED)


def parse_item_status(raw: object) -> ItemStatus:
    status = ITEM_STATUS.parse(raw)
    if status is None:
        raise ValidationError(
            f"status must be one of {', '.join(ITEM_STATUS.choices())}"
        )
    return status


def parse_priority(raw: object, *, default: Optional[int] = None) -> int:
    """Return a priority in {1, 2, 3}.

    ``None`` and blank strings fall back to ``default`` when one is given.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        if default is None:
            raise ValidationError("priority must be one of 1 (Low), 2 (Medium), or 3 (High)")
        raw = default
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        value = int(raw) if raw.is_integer() else None
    elif isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError:
            value = None
    else:
        value = None
    if value not in VALID_PRIORITIES:
        raise ValidationError("priority must be one of 1 (Low), 2 (Medium), or 3 (High)")
    return value


def parse_due_date(raw: object) -> Optional[dt.datetime]:
    """Parse a calendar date into midnight UTC; ``None``/``""`` clears it."""
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError("dueDate must be a string or null")
    text = raw.strip()
    if not text:
        return None
    try:
        day = dt.date.fromisoformat(text)
    except ValueError:
        try:
            moment = dt.datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError("dueDate must be a valid date (yyyy-mm-dd)") from None
        if moment.tzinfo is not None:
            moment = moment.astimezone(dt.timezone.utc)
        day = moment.date()
    return dt.datetime(day.year, day.month, day.day, tzinfo=dt.timezone.utc)


def _clean_notes(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    return raw.strip() or None


class TaskService:
    """Workspace-scoped task operations."""

    def __init__(self, session: Session, clock: Callable[[], dt.datetime] = utcnow):
        self.session = session
        self.clock = clock

    def _get_task(self, task_id: str, workspace_id: str) -> Task:
        task = self.session.execute(
            select(Task).where(Task.id == task_id, Task.workspace_id == workspace_id)
        ).scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def _existing_for_note(self, workspace_id: str, note_id: str) -> Optional[str]:
        return self.session.execute(
            select(Task.id).where(
                Task.workspace_id == workspace_id,
                Task.source_voice_note_id == note_id,
            )
        ).scalar_one_or_none()

    def list_tasks(self, workspace_id: str, status: Optional[str] = None) -> list[Task]:
        stmt = select(Task).where(Task.workspace_id == workspace_id)
        if status is not None:
            stmt = stmt.where(Task.status == parse_item_status(status))
        else:
            stmt = stmt.where(Task.status.in_(DEFAULT_LIST_STATUSES))
        stmt = stmt.order_by(Task.created_at.desc())
        return list(self.session.execute(stmt).scalars())

    def create_task(
        self,
        workspace_id: str,
        request: schemas.TaskCreateRequest,
        created_by_id: Optional[str] = None,
    ) -> Task:
        title = (request.title or "").strip()
        if not title:
            raise ValidationError("title is required")
        priority = parse_priority(request.priority, default=DEFAULT_PRIORITY)
        due_date = parse_due_date(request.due_date)
        note_id = (request.source_voice_note_id or "").strip() or None

        if note_id is not None:
            existing_id = self._existing_for_note(workspace_id, note_id)
            if existing_id is not None:
                raise ConflictError(
                    "A task already exists for this voice note",
                    existingTaskId=existing_id,
                )

        task = Task(
            workspace_id=workspace_id,
            created_by_id=created_by_id,
            title=title,
            notes=_clean_notes(request.notes),
            due_date=due_date,
            priority=priority,
            status=ItemStatus.ACTIVE,
            source_voice_note_id=note_id,
            is_pinned=False,
            created_at=self.clock(),
        )
        self.session.add(task)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            existing_id = note_id and self._existing_for_note(workspace_id, note_id)
            if existing_id:
                raise ConflictError(
                    "A task already exists for this voice note",
                    existingTaskId=existing_id,
                ) from None
            raise

        logger.info("task_created", task_id=task.id, workspace_id=workspace_id)
        return task

    def update_task(
        self, task_id: str, workspace_id: str, request: schemas.TaskUpdateRequest
    ) -> Task:
        task = self._get_task(task_id, workspace_id)
        provided = request.model_fields_set
        changes: dict = {}

        if "title" in provided:
            title = (request.title or "").strip()
            if not title:
                raise ValidationError("title must be a non-empty string")
            changes["title"] = title

        if "notes" in provided:
            if request.notes is None:
                raise ValidationError("notes must be a string")
            changes["notes"] = _clean_notes(request.notes)

        if "priority" in provided:
            changes["priority"] = parse_priority(request.priority)

        if "due_date" in provided:
            changes["due_date"] = parse_due_date(request.due_date)

        for key, value in changes.items():
            setattr(task, key, value)
        self.session.commit()

        logger.info("task_updated", task_id=task.id, fields=sorted(changes))
        return task

    def set_status(self, task_id: str, workspace_id: str, status: object) -> Task:
        new_status = parse_item_status(status)
        task = self._get_task(task_id, workspace_id)

        task.status = new_status
        task.deleted_at = self.clock() if new_status is ItemStatus.DELETED else None
        self.session.commit()

        logger.info("task_status_changed", task_id=task.id, status=new_status.value)
        return task

    def set_pinned(self, task_id: str, workspace_id: str, is_pinned: object) -> Task:
        if not isinstance(is_pinned, bool):
            raise ValidationError("isPinned must be a boolean")
        task = self._get_task(task_id, workspace_id)

        task.is_pinned = is_pinned
        task.pinned_at = self.clock() if is_pinned else None
        self.session.commit()

        logger.info("task_pin_changed", task_id=task.id, is_pinned=is_pinned)
        return task
