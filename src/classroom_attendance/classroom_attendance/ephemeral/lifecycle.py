from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

logger = logging.getLogger(__name__)


@dataclass
class RedisConfig:
    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None
    db: int = 0

    @classmethod
    def from_mapping(cls, redis_config: dict) -> "RedisConfig":
        return cls(
            host=str(redis_config.get("host", "localhost")),
            port=int(redis_config.get("port", 6379)),
            username=redis_config.get("username") or None,
            password=redis_config.get("password") or None,
            db=int(redis_config.get("db", 0)),
        )


class RedisLifecycle:
    """Owns the Redis client: construction, startup ping, reconnect policy, close.

    The client retries individual commands on connection errors with capped
    exponential backoff (100 ms doubling up to 3 s); the core itself never
    retries.
    """

    def __init__(self, config: RedisConfig, *, retries: int = 3, cap_seconds: float = 3.0, base_seconds: float = 0.1):
        self._config = config
        self._retries = retries
        self._cap = cap_seconds
        self._base = base_seconds
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self) -> redis.Redis:
        return redis.Redis(
            host=self._config.host,
            port=self._config.port,
            username=self._config.username,
            password=self._config.password,
            db=self._config.db,
            decode_responses=True,
            socket_connect_timeout=5,
            health_check_interval=30,
            retry=Retry(ExponentialBackoff(cap=self._cap, base=self._base), self._retries),
            retry_on_error=[redis.ConnectionError, redis.TimeoutError],
        )

    def connect(self, *, attempts: int = 5) -> bool:
        """Ping until the server answers; back off between attempts."""
        delay = self._base
        for attempt in range(1, attempts + 1):
            try:
                self.client.ping()
            except redis.RedisError as e:
                logger.warning("Redis not reachable (attempt %d/%d): %s", attempt, attempts, e)
                if attempt == attempts:
                    return False
                time.sleep(delay)
                delay = min(delay * 2, self._cap)
                continue
            logger.info("Redis connected: %s:%s/%s", self._config.host, self._config.port, self._config.db)
            return True
        return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Redis connection closed")
