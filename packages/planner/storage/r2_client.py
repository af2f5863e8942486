"""Cloudflare R2 audio storage (S3-compatible).

R2는 S3 호환 API를 제공하므로 boto3를 사용하여 연동합니다.
주요 기능:
- 음성 메모 업로드
- 업로드 실패 시 정리용 삭제
- Public URL 생성
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from ..errors import ConfigurationError, ValidationError
from .base import VOICE_NOTE_PREFIX, AudioUpload, StoredAudio, build_object_name

__all__ = ["R2Config", "R2AudioStorage"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class R2Config:
    """Cloudflare R2 설정."""

    # R2 엔드포인트: https://<account_id>.r2.cloudflarestorage.com
    endpoint_url: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    # Public 액세스용 커스텀 도메인 (선택)
    public_domain: Optional[str] = None
    # 업로드 파일 최대 크기 (bytes, 기본 25MB)
    max_file_size: int = 25 * 1024 * 1024

    @classmethod
    def from_env(cls) -> R2Config:
        """환경변수에서 R2 설정 로드."""
        endpoint_url = os.getenv("R2_ENDPOINT_URL")
        access_key_id = os.getenv("R2_ACCESS_KEY_ID")
        secret_access_key = os.getenv("R2_SECRET_ACCESS_KEY")
        bucket_name = os.getenv("R2_BUCKET_NAME")

        if not all([endpoint_url, access_key_id, secret_access_key, bucket_name]):
            raise ConfigurationError(
                "R2 configuration required: set R2_ENDPOINT_URL, R2_ACCESS_KEY_ID, "
                "R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME"
            )

        return cls(
            endpoint_url=endpoint_url,  # type: ignore
            access_key_id=access_key_id,  # type: ignore
            secret_access_key=secret_access_key,  # type: ignore
            bucket_name=bucket_name,  # type: ignore
            public_domain=os.getenv("R2_PUBLIC_DOMAIN"),
            max_file_size=int(os.getenv("R2_MAX_FILE_SIZE", str(25 * 1024 * 1024))),
        )


class R2AudioStorage:
    """R2 음성 메모 저장소 (boto3 S3 API 사용)."""

    def __init__(self, config: R2Config, client=None):
        self.config = config
        self._client = client or boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            ),
            region_name="auto",  # R2는 리전이 없지만 boto3는 필수
        )

    def public_url(self, key: str) -> str:
        """Public 도메인이 없으면 ``r2://bucket/key`` 참조를 반환."""
        if self.config.public_domain:
            return f"https://{self.config.public_domain}/{key}"
        return f"r2://{self.config.bucket_name}/{key}"

    def save(self, upload: AudioUpload) -> StoredAudio:
        """음성 파일 업로드.

        Raises:
            ValidationError: 파일 크기 초과
            ClientError: R2 업로드 오류
        """
        size = len(upload.data)
        if size > self.config.max_file_size:
            raise ValidationError(
                f"Audio size {size} exceeds maximum {self.config.max_file_size}"
            )

        key = f"{VOICE_NOTE_PREFIX}/{build_object_name(upload)}"
        checksum = hashlib.sha256(upload.data).hexdigest()
        extra_args = {"Metadata": {"sha256": checksum}}
        if upload.content_type:
            extra_args["ContentType"] = upload.content_type

        try:
            self._client.put_object(
                Bucket=self.config.bucket_name,
                Key=key,
                Body=upload.data,
                **extra_args,
            )
        except ClientError as e:
            logger.error(
                "Failed to upload audio to R2",
                extra={"key": key, "error": str(e)},
            )
            raise

        logger.info(
            "Uploaded audio to R2",
            extra={"key": key, "bucket": self.config.bucket_name, "size": size},
        )
        return StoredAudio(
            key=key,
            url=self.public_url(key),
            content_type=upload.content_type or None,
        )

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.config.bucket_name, Key=key)
        except ClientError as e:
            logger.error(
                "Failed to delete audio from R2",
                extra={"key": key, "error": str(e)},
            )
            raise
        logger.info("Deleted audio from R2", extra={"key": key})
