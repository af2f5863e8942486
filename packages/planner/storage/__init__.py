"""Audio storage backends for voice notes."""

from __future__ import annotations

from pathlib import Path

from .base import AudioStorage, AudioUpload, StoredAudio, build_object_name
from .local import LocalAudioStorage

__all__ = [
    "AudioStorage",
    "AudioUpload",
    "StoredAudio",
    "LocalAudioStorage",
    "build_object_name",
    "build_storage",
]


def build_storage(backend: str, upload_dir: str | Path) -> AudioStorage:
    """Create the storage backend selected by settings."""

    if backend == "r2":
        from .r2_client import R2AudioStorage, R2Config

        return R2AudioStorage(R2Config.from_env())
    return LocalAudioStorage(upload_dir)
