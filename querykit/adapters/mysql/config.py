"""MySQL database configuration."""

from typing import Any

from querykit.adapters.mysql.pool import MySQLConnectionParams, MySQLConnectionPool
from querykit.config import DatabaseConfig

__all__ = ("MySQLConfig",)


class MySQLConfig(DatabaseConfig[MySQLConnectionPool]):
    """MySQL database configuration."""

    __slots__ = ()

    pool_type = MySQLConnectionPool

    def __init__(
        self, *, connection_parameters: "MySQLConnectionParams | dict[str, Any] | None" = None, **kwargs: Any
    ) -> None:
        super().__init__(connection_parameters=dict(connection_parameters or {}), **kwargs)
