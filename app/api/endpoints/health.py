from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.cache.redis_client import JsonCache, get_cache
from app.database.session import get_db
from app.messaging.rabbitmq import create_connection
from app.schemas.common import Result
from app.storage.minio_client import ObjectStorage, get_storage

router = APIRouter()


@router.get("/db")
def health_db(db: Session = Depends(get_db)) -> Result[dict[str, Any]]:
    version = db.execute(text("SELECT version()")).scalar()
    return Result.success({"ok": True, "database": version})


@router.get("/cache")
def health_cache(cache: JsonCache = Depends(get_cache)) -> Result[dict[str, Any]]:
    return Result.success({"ok": bool(cache.client.ping())})


@router.get("/queue")
def health_queue() -> Result[dict[str, Any]]:
    connection = create_connection()
    try:
        return Result.success({"ok": connection.is_open})
    finally:
        connection.close()


@router.get("/storage")
def health_storage(storage: ObjectStorage = Depends(get_storage)) -> Result[dict[str, Any]]:
    exists = storage.client.bucket_exists(bucket_name=storage.bucket)
    return Result.success({"ok": True, "bucket": storage.bucket, "exists": exists})
