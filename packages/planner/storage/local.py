"""Filesystem audio storage served by the API under ``/uploads``."""

from __future__ import annotations

import logging
from pathlib import Path

from .base import VOICE_NOTE_PREFIX, AudioUpload, StoredAudio, build_object_name

__all__ = ["LocalAudioStorage"]

logger = logging.getLogger(__name__)


class LocalAudioStorage:
    """Write uploads below ``root/voice-notes``."""

    def __init__(self, root: str | Path, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = "/" + url_prefix.strip("/")

    def save(self, upload: AudioUpload) -> StoredAudio:
        key = f"{VOICE_NOTE_PREFIX}/{build_object_name(upload)}"
        target = self.root / key
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(upload.data)
        logger.info("Stored audio %s (%d bytes)", key, len(upload.data))
        return StoredAudio(
            key=key,
            url=f"{self.url_prefix}/{key}",
            content_type=upload.content_type or None,
        )

    def delete(self, key: str) -> None:
        target = self.root / key
        try:
            target.unlink()
        except FileNotFoundError:
            logger.debug("Audio %s already removed", key)
