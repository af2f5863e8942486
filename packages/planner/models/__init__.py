"""Planner SQLAlchemy models organized by domain."""

from .base import Base, ItemStatus, NoteType, WorkspaceRole, as_utc, utcnow
from .accounts import User, Workspace, WorkspaceMember
from .tasks import Task
from .voice_notes import VoiceNote

__all__ = [
    "Base",
    "ItemStatus",
    "NoteType",
    "WorkspaceRole",
    "User",
    "Workspace",
    "WorkspaceMember",
    "Task",
    "VoiceNote",
    "as_utc",
    "utcnow",
]
