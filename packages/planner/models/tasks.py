"""Task model."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, ItemStatus, item_status_enum, new_id, utcnow
from .voice_notes import VoiceNote

if TYPE_CHECKING:  # pragma: no cover
    from .accounts import Workspace

__all__ = ["Task"]


class Task(Base):
    """To-do item scoped to a workspace."""

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint(
            "workspace_id",
            "source_voice_note_id",
            name="tasks_workspace_source_voice_note_key",
        ),
        Index("tasks_workspace_created_idx", "workspace_id", "created_at"),
        Index("tasks_status_deleted_idx", "status", "deleted_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    workspace_id: Mapped[str] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    created_by_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    due_date: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    status: Mapped[ItemStatus] = mapped_column(
        item_status_enum(), nullable=False, default=ItemStatus.ACTIVE
    )
    # No foreign key: notes are owned by the identity provider's user id and
    # may be removed independently of the tasks they produced.
    source_voice_note_id: Mapped[str | None] = mapped_column(String(64))
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pinned_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))
    deleted_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    workspace: Mapped["Workspace"] = relationship(back_populates="tasks")
    source_voice_note: Mapped[VoiceNote | None] = relationship(
        primaryjoin="foreign(Task.source_voice_note_id) == VoiceNote.id",
        viewonly=True,
        lazy="selectin",
    )
