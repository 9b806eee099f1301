"""
MinIO object storage.

One process-wide client with explicit connect/read timeouts, and an
``ObjectStorage`` wrapper bound to the default bucket.
"""

from __future__ import annotations

import io
from datetime import timedelta
from typing import Optional

import urllib3
from minio import Minio
from minio.error import S3Error

from app.core.config import Settings, get_settings
from app.core.exceptions import BizException
from app.core.result_code import ResultCode
from app.utils.logger import get_logger

logger = get_logger(__name__)

_client: Optional[Minio] = None

_MISSING_OBJECT_CODES = {"NoSuchKey", "NoSuchObject"}


def build_http_client(settings: Settings) -> urllib3.PoolManager:
    # urllib3 has no separate write timeout; uploads are bounded by the longer of the two
    timeout = urllib3.Timeout(
        connect=settings.minio_connect_timeout,
        read=max(settings.minio_read_timeout, settings.minio_write_timeout),
    )
    retries = urllib3.Retry(total=5, backoff_factor=0.2, status_forcelist=[500, 502, 503, 504])
    return urllib3.PoolManager(timeout=timeout, retries=retries)


def create_minio_client(settings: Optional[Settings] = None) -> Minio:
    settings = settings or get_settings()
    logger.info(
        "Initializing MinIO client: endpoint=%s, bucket=%s, console=%s",
        settings.minio_endpoint,
        settings.minio_bucket_name,
        settings.minio_console_endpoint,
    )
    try:
        client = Minio(
            settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
            http_client=build_http_client(settings),
        )
    except ValueError as exc:
        logger.error("MinIO client initialization failed: %s", exc, exc_info=exc)
        raise RuntimeError(f"Unable to initialize MinIO client: {exc}") from exc
    return client


def get_minio_client() -> Minio:
    global _client
    if _client is None:
        _client = create_minio_client()
    return _client


class ObjectStorage:
    def __init__(self, client: Minio, bucket: str):
        self.client = client
        self.bucket = bucket

    def ensure_bucket(self) -> None:
        if not self.client.bucket_exists(bucket_name=self.bucket):
            self.client.make_bucket(bucket_name=self.bucket)
            logger.info("Bucket created: %s", self.bucket)

    def upload_bytes(self, object_name: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
        logger.debug("Object uploaded: bucket=%s, object=%s, size=%d", self.bucket, object_name, len(data))
        return object_name

    def download_bytes(self, object_name: str) -> bytes:
        try:
            response = self.client.get_object(bucket_name=self.bucket, object_name=object_name)
        except S3Error as exc:
            if exc.code in _MISSING_OBJECT_CODES:
                raise BizException(ResultCode.DATA_NOT_FOUND, f"Object not found: {object_name}") from exc
            raise
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def remove(self, object_name: str) -> None:
        self.client.remove_object(bucket_name=self.bucket, object_name=object_name)

    def presigned_url(self, object_name: str, expires: timedelta = timedelta(hours=1)) -> str:
        return self.client.presigned_get_object(bucket_name=self.bucket, object_name=object_name, expires=expires)


def get_storage() -> ObjectStorage:
    """FastAPI dependency: storage bound to ``MINIO_BUCKET_NAME``."""
    return ObjectStorage(get_minio_client(), get_settings().minio_bucket_name)
