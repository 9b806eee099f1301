"""
Redis cache access.

Keys are plain strings (with the configured prefix); values are stored as
JSON so any process, in any language, can read them back.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import redis

from app.core.config import get_settings
from app.schemas.common import json_default
from app.utils.logger import get_logger

logger = get_logger(__name__)

_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Process-wide client backed by redis-py's connection pool."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        logger.info("Redis client initialized, prefix=%s", settings.cache_key_prefix)
    return _client


class JsonCache:
    def __init__(self, client: redis.Redis, prefix: str = "", default_ttl: Optional[int] = None):
        self.client = client
        self.prefix = prefix
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str, default: Any = None) -> Any:
        raw = self.client.get(self._key(key))
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        payload = json.dumps(value, default=json_default, ensure_ascii=False)
        expire = ttl if ttl is not None else self.default_ttl
        self.client.set(self._key(key), payload, ex=expire)

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self.client.delete(*(self._key(k) for k in keys)))

    def exists(self, key: str) -> bool:
        return bool(self.client.exists(self._key(key)))


def get_cache() -> JsonCache:
    """FastAPI dependency returning a cache bound to the shared client."""
    settings = get_settings()
    return JsonCache(
        get_redis_client(),
        prefix=settings.cache_key_prefix,
        default_ttl=settings.cache_default_ttl,
    )
