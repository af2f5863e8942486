"""Planner data models, services and HTTP application."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    # Models
    "Base",
    "ItemStatus",
    "NoteType",
    "Task",
    "User",
    "VoiceNote",
    "Workspace",
    "WorkspaceMember",
    "WorkspaceRole",
    # Services
    "AccountService",
    "PlannerDatabase",
    "PlannerSettings",
    "TaskService",
    "VoiceNoteService",
    "WorkspaceResolver",
    "init_engine",
    "purge_deleted_tasks",
    # API
    "create_app",
]

_LOCATIONS = {
    "Base": ".models",
    "ItemStatus": ".models",
    "NoteType": ".models",
    "Task": ".models",
    "User": ".models",
    "VoiceNote": ".models",
    "Workspace": ".models",
    "WorkspaceMember": ".models",
    "WorkspaceRole": ".models",
    "AccountService": ".accounts",
    "PlannerDatabase": ".service",
    "PlannerSettings": ".service",
    "WorkspaceResolver": ".service",
    "init_engine": ".service",
    "TaskService": ".tasks",
    "VoiceNoteService": ".voice_notes",
    "purge_deleted_tasks": ".retention",
    "create_app": ".api",
}


def __getattr__(name: str) -> Any:  # pragma: no cover - thin import shim
    location = _LOCATIONS.get(name)
    if location is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(import_module(location, __name__), name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - introspection helper
    return sorted(__all__ + ["schema", "storage", "ranking"])
