"""Shared SQLAlchemy base, id/clock helpers and enum column factories."""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy.orm import DeclarativeBase

from ..schema.enums import ItemStatus, NoteType, WorkspaceRole, sa_enum

__all__ = [
    "Base",
    "ItemStatus",
    "NoteType",
    "WorkspaceRole",
    "new_id",
    "utcnow",
    "as_utc",
    "item_status_enum",
    "note_type_enum",
    "workspace_role_enum",
]


class Base(DeclarativeBase):
    """Declarative base class shared by all planner models."""


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime | None) -> dt.datetime | None:
    """Attach UTC to naive timestamps (SQLite drops the offset on read)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=dt.timezone.utc)


# Enum helper factories -----------------------------------------------------

def item_status_enum():
    """Return the column type for ``item_status``."""

    return sa_enum(ItemStatus)


def note_type_enum():
    """Return the column type for ``note_type``."""

    return sa_enum(NoteType)


def workspace_role_enum():
    """Return the column type for ``workspace_role``."""

    return sa_enum(WorkspaceRole)
