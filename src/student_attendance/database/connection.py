from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Mapping, Optional

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "student_attendance"
    connection_timeout: int = 10

    @classmethod
    def from_dict(cls, db_config: Mapping[str, object]) -> "DBConfig":
        defaults = cls()
        return cls(
            host=str(db_config.get("host") or defaults.host),
            port=int(db_config.get("port") or defaults.port),
            user=str(db_config.get("user") or defaults.user),
            password=str(db_config.get("password") or ""),
            database=str(db_config.get("database") or defaults.database),
            connection_timeout=int(db_config.get("connection_timeout") or defaults.connection_timeout),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict:
        kwargs = asdict(self)
        if not with_database:
            kwargs.pop("database")
        return kwargs

    def describe(self) -> str:
        """Connection target without the password, for logs."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Hands out short-lived MySQL connections to the repositories.

    Each repository call opens its own connection and closes it when done, so
    a request never shares a connection (or a transaction) with another one.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = cls(config)
        return cls._instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        return mysql.connector.connect(charset="utf8mb4", **self._config.connect_kwargs())

    def ping(self) -> bool:
        try:
            conn = self.connect()
        except mysql.connector.Error as e:
            logger.warning("Database %s unreachable: %s", self._config.describe(), e)
            return False
        try:
            return bool(conn.is_connected())
        finally:
            conn.close()
