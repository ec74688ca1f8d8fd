import asyncio
import io
import re
import uuid
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

import boto3
from minio import Minio

from projectdesk.core.config import settings
from projectdesk.core.exceptions import StorageUploadError
from projectdesk.core.logging_config import logger


@dataclass(frozen=True)
class StoredFile:
    """Result of an upload: where it lives and what the user called it"""
    url: str
    original_filename: str
    key: str


def _safe_filename(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", name or "").strip("._")
    return cleaned or "file"


def build_object_name(folder: str, filename: str) -> str:
    return f"{folder.strip('/')}/{uuid.uuid4().hex[:12]}_{_safe_filename(filename)}"


class StorageClient:
    """Local-directory, S3 or MinIO object storage for generated and uploaded files"""

    def __init__(self, mode: Optional[str] = None, local_dir: Optional[str] = None):
        self.mode = (mode or settings.STORAGE_MODE).lower()
        self.bucket_name = settings.S3_BUCKET_NAME
        self.client = None

        if self.mode == "minio":
            self.client = Minio(
                settings.MINIO_ENDPOINT,
                access_key=settings.AWS_ACCESS_KEY_ID,
                secret_key=settings.AWS_SECRET_ACCESS_KEY,
                secure=settings.MINIO_SECURE
            )
        elif self.mode == "s3":
            self.client = boto3.client(
                's3',
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
                region_name=settings.AWS_REGION
            )
        elif self.mode == "local":
            self.local_dir = Path(local_dir or settings.LOCAL_STORAGE_DIR)
            self.local_dir.mkdir(parents=True, exist_ok=True)
        else:
            raise ValueError(f"Unknown STORAGE_MODE: {self.mode}")

        self._bucket_checked = False

    def _ensure_bucket_exists(self):
        if self._bucket_checked or self.mode == "local":
            return
        if self.mode == "minio":
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info(f"Created MinIO bucket: {self.bucket_name}")
        else:
            self.client.head_bucket(Bucket=self.bucket_name)
        self._bucket_checked = True

    def get_file_url(self, object_name: str, expiry: int = None) -> str:
        """Public URL for local storage, presigned URL for S3/MinIO"""
        expiry = expiry or settings.PRESIGNED_URL_EXPIRY
        if self.mode == "local":
            return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/{object_name}"
        if self.mode == "minio":
            return self.client.presigned_get_object(
                self.bucket_name,
                object_name,
                expires=timedelta(seconds=expiry)
            )
        return self.client.generate_presigned_url(
            'get_object',
            Params={'Bucket': self.bucket_name, 'Key': object_name},
            ExpiresIn=expiry
        )

    def upload_bytes(
        self,
        data: bytes,
        filename: str,
        folder: str = "uploads",
        content_type: str = "application/pdf"
    ) -> StoredFile:
        """
        Upload raw bytes under `folder`.

        Returns:
            StoredFile with the URL and the caller's original filename
        """
        object_name = build_object_name(folder, filename)
        try:
            if self.mode == "local":
                target = self.local_dir / object_name
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(data)
            elif self.mode == "minio":
                self._ensure_bucket_exists()
                self.client.put_object(
                    self.bucket_name,
                    object_name,
                    io.BytesIO(data),
                    len(data),
                    content_type=content_type
                )
            else:
                self._ensure_bucket_exists()
                self.client.put_object(
                    Bucket=self.bucket_name,
                    Key=object_name,
                    Body=data,
                    ContentType=content_type
                )
            url = self.get_file_url(object_name)
        except Exception as e:
            logger.error(f"Error uploading file object: {e}")
            raise StorageUploadError(f"Upload of '{filename}' failed: {e}", object_name=object_name) from e

        logger.info(f"Uploaded file object: {object_name} ({len(data)} bytes)")
        return StoredFile(url=url, original_filename=filename, key=object_name)

    async def upload_bytes_async(self, data: bytes, filename: str, folder: str = "uploads",
                                 content_type: str = "application/pdf") -> StoredFile:
        return await asyncio.to_thread(self.upload_bytes, data, filename, folder, content_type)


_storage_client: Optional[StorageClient] = None


def get_storage_client() -> StorageClient:
    """Process-wide storage client, created on first use"""
    global _storage_client
    if _storage_client is None:
        _storage_client = StorageClient()
    return _storage_client
