from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation (safe for simple Flask apps).
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self.ready = False

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def label(self) -> str:
        c = self._config
        return f"{c.user}@{c.host}:{c.port}/{c.database}"

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def ping(self) -> bool:
        try:
            conn = self.connect()
        except mysql.connector.Error:
            self.ready = False
            return False
        try:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            cur.fetchall()
            cur.close()
        finally:
            conn.close()
        self.ready = True
        return True

    def wait_until_ready(self, *, retries: int = 3, delay_seconds: float = 3, sleep: Callable[[float], None] = time.sleep) -> None:
        """Ping the database, retrying before giving up with the last error."""
        for attempt in range(1, retries + 1):
            try:
                conn = self.connect()
                conn.close()
                self.ready = True
                logger.info("Database connected: %s", self.label)
                return
            except mysql.connector.Error as exc:
                self.ready = False
                logger.warning("Database connection attempt %s/%s failed: %s", attempt, retries, exc)
                if attempt == retries:
                    raise
                sleep(delay_seconds)
