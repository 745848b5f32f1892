from __future__ import annotations

from typing import Dict, Optional, Protocol, Sequence, Set


class EphemeralStore(Protocol):
    """Key-value primitives the coordination layer relies on.

    Mirrors the Redis command subset in use: hashes with per-field writes,
    sets, plain strings and a TTL that applies to a whole key. An empty hash
    and a missing key are indistinguishable to readers.
    """

    # Hashes
    def hset(self, key: str, field: str, value: str) -> None:
        raise NotImplementedError

    def hget(self, key: str, field: str) -> Optional[str]:
        raise NotImplementedError

    def hexists(self, key: str, field: str) -> bool:
        raise NotImplementedError

    def hgetall(self, key: str) -> Dict[str, str]:
        raise NotImplementedError

    def hdel(self, key: str, field: str) -> int:
        raise NotImplementedError

    def hset_with_ttl(self, key: str, field: str, value: str, seconds: int) -> None:
        """HSET and EXPIRE applied together; the key never exists without its TTL."""
        raise NotImplementedError

    # Sets
    def sadd(self, key: str, member: str) -> int:
        raise NotImplementedError

    def smembers(self, key: str) -> Set[str]:
        raise NotImplementedError

    def srem(self, key: str, member: str) -> int:
        raise NotImplementedError

    # Strings / keys
    def setex(self, key: str, seconds: int, value: str) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def delete(self, key: str) -> int:
        raise NotImplementedError

    def expire(self, key: str, seconds: int) -> bool:
        raise NotImplementedError

    def keys(self, pattern: str) -> Sequence[str]:
        raise NotImplementedError
