"""Audio storage contracts shared by the local and R2 backends."""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

__all__ = ["AudioUpload", "StoredAudio", "AudioStorage", "build_object_name"]

DEFAULT_EXTENSION = "webm"
VOICE_NOTE_PREFIX = "voice-notes"


@dataclass(frozen=True, slots=True)
class AudioUpload:
    """Raw audio payload received with a note."""

    data: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.data


@dataclass(frozen=True, slots=True)
class StoredAudio:
    key: str
    url: str
    content_type: Optional[str]


class AudioStorage(Protocol):
    def save(self, upload: AudioUpload) -> StoredAudio: ...

    def delete(self, key: str) -> None: ...


_SAFE_EXTENSION = re.compile(r"^[A-Za-z0-9]{1,10}$")


def _safe_extension(candidate: str) -> Optional[str]:
    candidate = candidate.strip()
    return candidate if _SAFE_EXTENSION.match(candidate) else None


def _extension(upload: AudioUpload) -> str:
    """Extension from the filename, then the MIME subtype, then ``webm``.

    Only short alphanumeric extensions are kept so client input never adds
    path segments to the object key.
    """
    filename = upload.filename or ""
    if "." in filename:
        ext = _safe_extension(filename.rsplit(".", 1)[1])
        if ext:
            return ext
    if upload.content_type and "/" in upload.content_type:
        subtype = _safe_extension(upload.content_type.split("/", 1)[1].split(";", 1)[0])
        if subtype:
            return subtype
    return DEFAULT_EXTENSION


def build_object_name(upload: AudioUpload) -> str:
    """Unique ``<epoch-ms>-<uuid4>.<ext>`` name for an upload."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4()}.{_extension(upload)}"
