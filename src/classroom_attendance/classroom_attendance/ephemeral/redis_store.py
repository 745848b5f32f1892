from __future__ import annotations

import functools
import logging
from typing import Dict, Optional, Sequence, Set

import redis

from ..core.exceptions import StoreUnavailableError
from .store import EphemeralStore

logger = logging.getLogger(__name__)


def _translate_errors(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except redis.RedisError as e:
            logger.error("Redis %s failed: %s", method.__name__, e)
            raise StoreUnavailableError("Session store unavailable") from e

    return wrapper


class RedisEphemeralStore(EphemeralStore):
    """EphemeralStore backed by a redis-py client (``decode_responses=True``)."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @_translate_errors
    def hset(self, key: str, field: str, value: str) -> None:
        self._client.hset(key, field, value)

    @_translate_errors
    def hget(self, key: str, field: str) -> Optional[str]:
        return self._client.hget(key, field)

    @_translate_errors
    def hexists(self, key: str, field: str) -> bool:
        return bool(self._client.hexists(key, field))

    @_translate_errors
    def hgetall(self, key: str) -> Dict[str, str]:
        return dict(self._client.hgetall(key) or {})

    @_translate_errors
    def hdel(self, key: str, field: str) -> int:
        return int(self._client.hdel(key, field))

    @_translate_errors
    def hset_with_ttl(self, key: str, field: str, value: str, seconds: int) -> None:
        pipe = self._client.pipeline(transaction=True)
        pipe.hset(key, field, value)
        pipe.expire(key, int(seconds))
        pipe.execute()

    @_translate_errors
    def sadd(self, key: str, member: str) -> int:
        return int(self._client.sadd(key, member))

    @_translate_errors
    def smembers(self, key: str) -> Set[str]:
        return set(self._client.smembers(key) or set())

    @_translate_errors
    def srem(self, key: str, member: str) -> int:
        return int(self._client.srem(key, member))

    @_translate_errors
    def setex(self, key: str, seconds: int, value: str) -> None:
        self._client.setex(key, int(seconds), value)

    @_translate_errors
    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    @_translate_errors
    def delete(self, key: str) -> int:
        return int(self._client.delete(key))

    @_translate_errors
    def expire(self, key: str, seconds: int) -> bool:
        return bool(self._client.expire(key, int(seconds)))

    @_translate_errors
    def keys(self, pattern: str) -> Sequence[str]:
        # SCAN instead of KEYS so a large keyspace does not block the server.
        return list(self._client.scan_iter(match=pattern))
