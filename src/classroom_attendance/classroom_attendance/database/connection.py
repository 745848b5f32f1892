from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_mapping(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
        )


class DatabaseConnection:
    """DB connection factory, built once in the container and injected.

    Each repository call opens and closes its own connection.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def wait_until_ready(self, *, attempts: int = 5, base_delay: float = 0.5, max_delay: float = 4.0) -> bool:
        """Check the server is reachable, with exponential backoff; used once at startup."""
        delay = base_delay
        for attempt in range(1, attempts + 1):
            try:
                conn = self.connect()
            except mysql.connector.Error as e:
                logger.warning("MySQL not reachable (attempt %d/%d): %s", attempt, attempts, e)
                if attempt == attempts:
                    return False
                time.sleep(delay)
                delay = min(delay * 2, max_delay)
                continue
            conn.close()
            logger.info("MySQL connected: %s@%s:%s/%s", self._config.user, self._config.host, self._config.port, self._config.database)
            return True
        return False
