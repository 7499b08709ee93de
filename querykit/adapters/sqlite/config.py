"""SQLite database configuration."""

from typing import Any

from querykit.adapters.sqlite.pool import SqliteConnectionParams, SqliteConnectionPool
from querykit.config import DatabaseConfig

__all__ = ("SqliteConfig",)


class SqliteConfig(DatabaseConfig[SqliteConnectionPool]):
    """SQLite database configuration."""

    __slots__ = ()

    pool_type = SqliteConnectionPool

    def __init__(
        self, *, connection_parameters: "SqliteConnectionParams | dict[str, Any] | None" = None, **kwargs: Any
    ) -> None:
        super().__init__(connection_parameters=dict(connection_parameters or {}), **kwargs)
