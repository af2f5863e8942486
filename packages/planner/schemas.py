"""Pydantic schemas for planner API requests/responses."""

from __future__ import annotations

import datetime as dt
from typing import Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
)
from pydantic.alias_generators import to_camel

from .models import Task, VoiceNote, as_utc
from .ranking import priority_label, priority_score
from .schema.enums import ITEM_STATUS, NOTE_TYPE_LABELS

__all__ = [
    "TaskCreateRequest",
    "TaskUpdateRequest",
    "StatusUpdateRequest",
    "PinUpdateRequest",
    "TaskResponse",
    "TaskEnvelope",
    "TaskListResponse",
    "PageInfo",
    "NoteUpdateRequest",
    "NoteResponse",
    "NoteEnvelope",
    "NoteListResponse",
    "TaskCreatedMarker",
    "TaskCreatedEnvelope",
    "PurgeResponse",
    "RegisterRequest",
    "UserResponse",
    "UserEnvelope",
    "format_due_date",
]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def format_due_date(value: Optional[dt.datetime]) -> Optional[str]:
    """Render a stored due date as ``yyyy-mm-dd``."""
    if value is None:
        return None
    return as_utc(value).date().isoformat()


# ========================================================================
# 할 일
# ========================================================================


class TaskCreateRequest(CamelModel):
    """할 일 생성 요청."""

    title: Optional[StrictStr] = None
    notes: Optional[StrictStr] = Field(
        default=None, validation_alias=AliasChoices("notes", "details")
    )
    due_date: Optional[StrictStr] = None
    priority: Optional[Union[StrictInt, StrictFloat, StrictStr]] = Field(
        default=None, validation_alias=AliasChoices("priority", "urgency")
    )
    source_voice_note_id: Optional[StrictStr] = None


class TaskUpdateRequest(CamelModel):
    """할 일 수정 요청. 전달된 필드만 변경된다."""

    title: Optional[StrictStr] = None
    notes: Optional[StrictStr] = Field(
        default=None, validation_alias=AliasChoices("notes", "details")
    )
    due_date: Optional[StrictStr] = None
    priority: Optional[Union[StrictInt, StrictFloat, StrictStr]] = Field(
        default=None, validation_alias=AliasChoices("priority", "urgency")
    )


class StatusUpdateRequest(CamelModel):
    status: Optional[StrictStr] = None


class PinUpdateRequest(CamelModel):
    is_pinned: Optional[StrictBool] = None


class SourceVoiceNote(CamelModel):
    id: str
    type: str
    audio_url: Optional[str] = None


class TaskResponse(CamelModel):
    """할 일 응답."""

    id: str
    title: str
    notes: Optional[str]
    due_date: Optional[str]
    priority: int
    priority_score: int
    priority_label: str
    status: str
    source_voice_note_id: Optional[str]
    source_voice_note: Optional[SourceVoiceNote]
    is_pinned: bool
    pinned_at: Optional[dt.datetime]
    deleted_at: Optional[dt.datetime]
    created_at: dt.datetime

    @classmethod
    def from_task(cls, task: Task) -> TaskResponse:
        source = task.source_voice_note
        score = priority_score(task.priority, task.due_date)
        return cls(
            id=task.id,
            title=task.title,
            notes=task.notes,
            due_date=format_due_date(task.due_date),
            priority=task.priority,
            priority_score=score,
            priority_label=priority_label(score),
            status=ITEM_STATUS.render(task.status),
            source_voice_note_id=task.source_voice_note_id,
            source_voice_note=(
                SourceVoiceNote(id=source.id, type=source.type.value, audio_url=source.audio_url)
                if source is not None
                else None
            ),
            is_pinned=task.is_pinned,
            pinned_at=as_utc(task.pinned_at),
            deleted_at=as_utc(task.deleted_at),
            created_at=as_utc(task.created_at),
        )


class TaskEnvelope(CamelModel):
    task: TaskResponse


class PageInfo(CamelModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class TaskListResponse(CamelModel):
    tasks: list[TaskResponse]
    # Null unless the caller asked for a page.
    pagination: Optional[PageInfo] = None


# ========================================================================
# 음성 메모
# ========================================================================


class NoteUpdateRequest(CamelModel):
    """음성 메모 수정 요청."""

    title: Optional[StrictStr] = None
    content: Optional[StrictStr] = None


class NoteResponse(CamelModel):
    """음성 메모 응답."""

    id: str
    title: str
    content: Optional[str]
    type: str
    note_type: str
    audio_url: Optional[str]
    audio_mime_type: Optional[str]
    duration_ms: Optional[int]
    status: str
    task_created_at: Optional[dt.datetime]
    deleted_at: Optional[dt.datetime]
    created_at: dt.datetime

    @classmethod
    def from_note(cls, note: VoiceNote) -> NoteResponse:
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            type=note.type.value,
            note_type=NOTE_TYPE_LABELS[note.type],
            audio_url=note.audio_url,
            audio_mime_type=note.audio_mime_type,
            duration_ms=note.duration_ms,
            status=ITEM_STATUS.render(note.status),
            task_created_at=as_utc(note.task_created_at),
            deleted_at=as_utc(note.deleted_at),
            created_at=as_utc(note.created_at),
        )


class NoteEnvelope(CamelModel):
    note: NoteResponse


class NoteListResponse(CamelModel):
    notes: list[NoteResponse]


class TaskCreatedMarker(CamelModel):
    id: str
    task_created_at: dt.datetime


class TaskCreatedEnvelope(CamelModel):
    note: TaskCreatedMarker


# ========================================================================
# 보존 정책 / 계정
# ========================================================================


class PurgeResponse(CamelModel):
    deleted_count: int


class RegisterRequest(CamelModel):
    """회원 가입 요청."""

    email: Optional[StrictStr] = None
    password: Optional[StrictStr] = None
    name: Optional[StrictStr] = None


class UserResponse(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    name: Optional[str]


class UserEnvelope(CamelModel):
    user: UserResponse
