"""Voice note lifecycle: capture, edits, status tabs and task promotion."""

from __future__ import annotations

import datetime as dt
import re
from typing import Callable, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from . import schemas
from .errors import ConfigurationError, NotFoundError, ValidationError
from .models import ItemStatus, NoteType, VoiceNote, utcnow
from .schema.enums import NOTE_TAB, NOTE_TYPE, NoteTab
from .storage import AudioStorage, AudioUpload
from .tasks import parse_item_status

__all__ = ["VoiceNoteService", "UNTITLED_NOTE", "parse_duration_ms"]

logger = structlog.get_logger(__name__)

UNTITLED_NOTE = "Untitled Note"

_LEADING_INT = re.compile(r"[+-]?\d+")


def parse_duration_ms(raw: object) -> Optional[int]:
    """Leading integer of ``raw`` or ``None``."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str):
        return None
    match = _LEADING_INT.match(raw.strip())
    return int(match.group(0)) if match else None


def _parse_tab(raw: object) -> NoteTab:
    tab = NOTE_TAB.parse(raw)
    if tab is None:
        raise ValidationError("Invalid status query value")
    return tab


class VoiceNoteService:
    """Notes owned by an external identity id."""

    def __init__(
        self,
        session: Session,
        storage: Optional[AudioStorage] = None,
        clock: Callable[[], dt.datetime] = utcnow,
    ):
        self.session = session
        self.storage = storage
        self.clock = clock

    def _get_note(self, note_id: str, user_id: str) -> VoiceNote:
        note = self.session.execute(
            select(VoiceNote).where(VoiceNote.id == note_id, VoiceNote.user_id == user_id)
        ).scalar_one_or_none()
        if note is None:
            raise NotFoundError("Voice note not found")
        return note

    def list_notes(self, user_id: str, tab: Optional[str] = None) -> list[VoiceNote]:
        stmt = select(VoiceNote).where(VoiceNote.user_id == user_id)
        if tab is not None:
            parsed = _parse_tab(tab)
            if parsed is NoteTab.ACTIVE:
                stmt = stmt.where(
                    VoiceNote.status == ItemStatus.ACTIVE,
                    VoiceNote.task_created_at.is_(None),
                )
            elif parsed is NoteTab.CREATED:
                stmt = stmt.where(
                    VoiceNote.status == ItemStatus.ACTIVE,
                    VoiceNote.task_created_at.is_not(None),
                )
            elif parsed is NoteTab.ARCHIVED:
                stmt = stmt.where(VoiceNote.status == ItemStatus.ARCHIVED)
            else:
                stmt = stmt.where(VoiceNote.status == ItemStatus.DELETED)
        stmt = stmt.order_by(VoiceNote.created_at.desc())
        return list(self.session.execute(stmt).scalars())

    def create_note(
        self,
        user_id: str,
        *,
        title: Optional[str] = None,
        content: Optional[str] = None,
        note_type: Optional[str] = None,
        duration_ms: object = None,
        audio: Optional[AudioUpload] = None,
    ) -> VoiceNote:
        title = (title or "").strip()
        content = (content or "").strip()
        has_audio = audio is not None and not audio.is_empty
        if not title and not content and not has_audio:
            raise ValidationError("title, content, or audio is required")

        requested = NOTE_TYPE.parse(note_type)
        if requested is NoteType.AUDIO and not has_audio:
            logger.info("voice_note_stored_as_text", user_id=user_id)

        stored = None
        if has_audio:
            if self.storage is None:
                raise ConfigurationError("Audio storage is not configured")
            stored = self.storage.save(audio)

        note = VoiceNote(
            user_id=user_id,
            type=NoteType.AUDIO if has_audio else NoteType.TEXT,
            title=title or UNTITLED_NOTE,
            content=content or None,
            audio_url=stored.url if stored else None,
            audio_mime_type=stored.content_type if stored else None,
            duration_ms=parse_duration_ms(duration_ms) if stored else None,
            status=ItemStatus.ACTIVE,
            created_at=self.clock(),
        )
        self.session.add(note)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            if stored is not None:
                self.storage.delete(stored.key)
            raise

        logger.info("voice_note_created", note_id=note.id, type=note.type.value)
        return note

    def update_note(
        self, note_id: str, user_id: str, request: schemas.NoteUpdateRequest
    ) -> VoiceNote:
        note = self._get_note(note_id, user_id)
        provided = request.model_fields_set

        if "title" in provided:
            if request.title is None:
                raise ValidationError("title must be a string")
            note.title = request.title.strip() or UNTITLED_NOTE

        if "content" in provided:
            if request.content is None:
                raise ValidationError("content must be a string")
            note.content = request.content.strip() or None

        self.session.commit()
        logger.info("voice_note_updated", note_id=note.id)
        return note

    def set_status(self, note_id: str, user_id: str, status: object) -> VoiceNote:
        new_status = parse_item_status(status)
        note = self._get_note(note_id, user_id)

        note.status = new_status
        note.deleted_at = self.clock() if new_status is ItemStatus.DELETED else None
        self.session.commit()

        logger.info("voice_note_status_changed", note_id=note.id, status=new_status.value)
        return note

    def mark_task_created(self, note_id: str, user_id: str) -> VoiceNote:
        """Latch ``task_created_at``; repeated calls keep the first timestamp."""
        note = self._get_note(note_id, user_id)
        if note.task_created_at is not None:
            return note

        # Conditional write keeps the latch one-way under concurrent requests.
        self.session.execute(
            update(VoiceNote)
            .where(VoiceNote.id == note.id, VoiceNote.task_created_at.is_(None))
            .values(task_created_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        self.session.refresh(note)
        logger.info("voice_note_promoted", note_id=note.id)
        return note
