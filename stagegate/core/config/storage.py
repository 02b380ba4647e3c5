from __future__ import annotations

import typing as t

import pydantic as p

from .base import BaseSettings

Driver = t.Literal["postgresql+psycopg", "sqlite+pysqlite"]


class StorageSettings(BaseSettings):
    persistent: PersistentSettings


class PersistentSettings(BaseSettings):
    database: DatabaseSettings
    echo: bool = False


class DatabaseSettings(BaseSettings):
    """Connection parameters; credentials live in secrets.database."""

    driver: Driver = "postgresql+psycopg"
    host: p.IPvAnyAddress | str | None = None
    port: int | None = 5432
    database: str

    @property
    def is_sqlite(self) -> bool:
        return self.driver.startswith("sqlite")

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and self.database in ("", ":memory:")
