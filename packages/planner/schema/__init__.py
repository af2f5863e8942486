"""Planner enum helpers shared between ORM models and the HTTP layer."""

from .enums import (
    EnumMapping,
    ItemStatus,
    NoteTab,
    NoteType,
    WorkspaceRole,
    ITEM_STATUS,
    NOTE_TAB,
    NOTE_TYPE,
    NOTE_TYPE_LABELS,
    sa_enum,
)

__all__ = [
    "EnumMapping",
    "ItemStatus",
    "NoteTab",
    "NoteType",
    "WorkspaceRole",
    "ITEM_STATUS",
    "NOTE_TAB",
    "NOTE_TYPE",
    "NOTE_TYPE_LABELS",
    "sa_enum",
]
