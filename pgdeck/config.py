"""Connection configuration loading helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import tomllib

from pydantic import BaseModel, ConfigDict, Field

CONFIG_FILE = Path.home() / ".config" / "pgdeck" / "config.toml"

ENV_OVERRIDES: Mapping[str, str] = {
    "DB_HOST": "host",
    "DB_PORT": "port",
    "DB_USER": "user",
    "DB_PASSWORD": "password",
    "DB_NAME": "database",
}


class ConnectionConfig(BaseModel):
    """Settings for one pooled connection to a PostgreSQL server.

    Instances are immutable; switching databases produces a new instance via
    ``with_database``.
    """

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    user: str = "postgres"
    password: str = Field(default="", repr=False)
    database: str = "postgres"
    max_pool_size: int = Field(default=10, ge=1)
    idle_timeout: float = Field(default=30.0, gt=0)
    connection_timeout: float = Field(default=5.0, gt=0)
    max_connection_uses: int = Field(default=7500, ge=1)

    def with_database(self, name: str) -> ConnectionConfig:
        """Return a copy pointed at another database."""

        return self.model_copy(update={"database": name})

    def describe(self) -> str:
        """Short ``host:port/database`` label that never includes credentials."""

        return f"{self.host}:{self.port}/{self.database}"

    def pool_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``asyncpg.create_pool``."""

        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "database": self.database,
            "min_size": 1,
            "max_size": self.max_pool_size,
            "max_queries": self.max_connection_uses,
            "max_inactive_connection_lifetime": self.idle_timeout,
            "timeout": self.connection_timeout,
        }
        if self.password:
            kwargs["password"] = self.password
        return kwargs


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> ConnectionConfig:
    """Load the connection config from disk, then apply ``DB_*`` overrides.

    A missing or unreadable file falls back to defaults.
    """

    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        data = {}
    except (tomllib.TOMLDecodeError, OSError):
        data = {}

    env = os.environ if environ is None else environ
    for variable, field in ENV_OVERRIDES.items():
        value = env.get(variable)
        if value:
            data[field] = value
    return ConnectionConfig(**data)


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    section = raw.get("connection")
    data: dict[str, object] = {}
    if not isinstance(section, dict):
        return data
    for key in ("host", "user", "password", "database"):
        value = section.get(key)
        if isinstance(value, str):
            data[key] = value
    for key in ("port", "max_pool_size", "max_connection_uses"):
        value = section.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            data[key] = value
    for key in ("idle_timeout", "connection_timeout"):
        value = section.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            data[key] = float(value)
    return data


__all__ = ["CONFIG_FILE", "ConnectionConfig", "load_config"]
