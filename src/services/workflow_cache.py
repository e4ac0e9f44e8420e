"""Advisory cache of last-seen workflow documents.

The engine is the source of truth. Entries may be stale and are only used
as display hints; nothing reads them for correctness.
"""

import json
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, Protocol

from redis import RedisError
from redis.asyncio import Redis

from services.errors import GatewayError


class CacheError(GatewayError):
    """Raised when the cache backend fails."""

    pass


class WorkflowCache(Protocol):
    """Key-value store from workflow id to workflow document."""

    backend: str

    async def get(self, workflow_id: str) -> dict[str, Any] | None: ...

    async def set(self, workflow_id: str, workflow: dict[str, Any]) -> None: ...

    async def delete(self, workflow_id: str) -> None: ...

    async def size(self) -> int: ...


class InMemoryWorkflowCache:
    """Process-local LRU cache with a per-entry time-to-live."""

    backend = "memory"

    def __init__(
        self,
        max_entries: int = 500,
        ttl: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._max_entries = max_entries
        self._ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, dict[str, Any]]] = OrderedDict()

    async def get(self, workflow_id: str) -> dict[str, Any] | None:
        if not workflow_id:
            raise ValueError("workflow_id is required")
        entry = self._entries.get(workflow_id)
        if entry is None:
            return None
        expires_at, workflow = entry
        if self._clock() >= expires_at:
            del self._entries[workflow_id]
            return None
        self._entries.move_to_end(workflow_id)
        return workflow

    async def set(self, workflow_id: str, workflow: dict[str, Any]) -> None:
        if not workflow_id:
            raise ValueError("workflow_id is required")
        self._entries[workflow_id] = (self._clock() + self._ttl, workflow)
        self._entries.move_to_end(workflow_id)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    async def delete(self, workflow_id: str) -> None:
        if not workflow_id:
            raise ValueError("workflow_id is required")
        self._entries.pop(workflow_id, None)

    async def size(self) -> int:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(self._entries)


class RedisWorkflowCache:
    """Redis-backed cache; entries expire after ``ttl`` seconds."""

    backend = "redis"

    def __init__(self, redis_client: Redis, ttl: int = 3600, prefix: str = "workflow-cache"):
        if redis_client is None:
            raise ValueError("redis_client is required")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._redis = redis_client
        self._ttl = ttl
        self._prefix = prefix

    def _key(self, workflow_id: str) -> str:
        return f"{self._prefix}:{workflow_id}"

    async def get(self, workflow_id: str) -> dict[str, Any] | None:
        if not workflow_id:
            raise ValueError("workflow_id is required")
        try:
            data = await self._redis.get(self._key(workflow_id))
        except RedisError as e:
            raise CacheError(f"Cache read failed: {e}") from e
        if data is None:
            return None
        return json.loads(data)

    async def set(self, workflow_id: str, workflow: dict[str, Any]) -> None:
        if not workflow_id:
            raise ValueError("workflow_id is required")
        try:
            await self._redis.set(self._key(workflow_id), json.dumps(workflow), ex=self._ttl)
        except RedisError as e:
            raise CacheError(f"Cache write failed: {e}") from e

    async def delete(self, workflow_id: str) -> None:
        if not workflow_id:
            raise ValueError("workflow_id is required")
        try:
            await self._redis.delete(self._key(workflow_id))
        except RedisError as e:
            raise CacheError(f"Cache delete failed: {e}") from e

    async def size(self) -> int:
        count = 0
        try:
            async for _ in self._redis.scan_iter(match=f"{self._prefix}:*", count=100):
                count += 1
        except RedisError as e:
            raise CacheError(f"Cache scan failed: {e}") from e
        return count
