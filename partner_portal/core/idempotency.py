"""
Replay protection for non-repeatable POSTs (partner intake, prospect
conversion, product import).

A client sends ``Idempotency-Key``; the first response is stored under
``idem:<operation>:<scope...>:<key>`` and returned verbatim on retries.
Redis is preferred; when it is unreachable the store degrades to a
per-process dict so retries inside one worker still replay.
"""
from __future__ import annotations

import asyncio
import json
import time
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from partner_portal.core.config import settings
from partner_portal.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 900


class _MemoryStore:
    def __init__(self) -> None:
        self._items: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> dict[str, Any] | None:
        async with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            expires_at, payload = item
            if expires_at <= time.monotonic():
                del self._items[key]
                return None
            return payload

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        async with self._lock:
            self._items[key] = (time.monotonic() + ttl_seconds, value)


class IdempotencyStore:
    def __init__(self, redis_url: str | None = None) -> None:
        self._redis_url = redis_url or settings.REDIS_URL
        self._redis = None
        self._redis_unavailable = False
        self._memory = _MemoryStore()

    @staticmethod
    def key(operation: str, *parts: Any) -> str:
        return ":".join(["idem", operation, *(str(p) for p in parts)])

    async def _get_redis(self):
        if self._redis_unavailable:
            return None
        if self._redis is None:
            try:
                self._redis = redis.from_url(self._redis_url, encoding="utf-8", decode_responses=True)
                await self._redis.ping()
            except (RedisError, OSError) as exc:
                logger.warning("idempotency_redis_unavailable", error=str(exc))
                self._redis_unavailable = True
                self._redis = None
        return self._redis

    async def get(self, key: str) -> dict[str, Any] | None:
        conn = await self._get_redis()
        if conn is None:
            return await self._memory.get(key)
        raw = await conn.get(key)
        if not raw:
            return None
        logger.info("idempotent_replay", key=key)
        return json.loads(raw)

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        conn = await self._get_redis()
        if conn is None:
            await self._memory.set(key, value, ttl_seconds)
            return
        await conn.setex(key, ttl_seconds, json.dumps(value, default=str))


idempotency_store = IdempotencyStore()
