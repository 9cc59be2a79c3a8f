from typing import Optional
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import REDIS_URL
from .exceptions import StorageError

_redis: Redis | None = None

def get_redis_url() -> str:
    return REDIS_URL

async def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(get_redis_url(), decode_responses=True)
    return _redis

async def close_redis():
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


class MemoryStorage:
    """Хранилище в памяти процесса (без Redis и в тестах)."""

    def __init__(self):
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, *keys: str) -> None:
        for k in keys:
            self._data.pop(k, None)


class RedisStorage:
    def __init__(self, redis: Redis, prefix: str = "paystatus"):
        self.redis = redis
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(self._key(key))
        except RedisError as e:
            raise StorageError(f"redis get {key}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            await self.redis.set(self._key(key), value)
        except RedisError as e:
            raise StorageError(f"redis set {key}: {e}") from e

    async def delete(self, *keys: str) -> None:
        try:
            await self.redis.delete(*(self._key(k) for k in keys))
        except RedisError as e:
            raise StorageError(f"redis delete {keys}: {e}") from e
