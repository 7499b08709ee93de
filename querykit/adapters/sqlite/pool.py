"""SQLite connection pool backed by the standard library driver."""

import sqlite3
import uuid
from typing import Any, TypedDict

from typing_extensions import NotRequired

from querykit.dialects import SQLITE
from querykit.parameters import ParameterStyle
from querykit.pool import ConnectionPool

__all__ = ("SqliteConnectionParams", "SqliteConnectionPool")

_ADAPTER_NAME = "sqlite"


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[str | None]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


def _normalize_parameters(connection_parameters: "dict[str, Any]") -> "dict[str, Any]":
    params = dict(connection_parameters)
    database = str(params.get("database", ":memory:"))
    if database == ":memory:":
        # Every pooled connection and the runner connection must see the same database.
        params["database"] = f"file:memory_{uuid.uuid4().hex}?mode=memory&cache=shared"
        params["uri"] = True
    elif database.startswith("file:"):
        params.setdefault("uri", True)
    # Connections move between threads through the pool; a lease is never shared.
    params.setdefault("check_same_thread", False)
    # Statements commit as they run.
    params.setdefault("isolation_level", None)
    return params


class SqliteConnectionPool(ConnectionPool):
    """Pool of :mod:`sqlite3` connections.

    ``sqlite3`` binds ``@name`` placeholders natively, so rendered SQL runs
    unchanged. ``":memory:"`` (the default) is mapped to a shared-cache
    in-memory database that lives as long as one connection to it stays open.
    """

    settings = SQLITE
    parameter_style = ParameterStyle.NAMED_AT
    adapter_name = _ADAPTER_NAME
    test_query = "SELECT sqlite_version()"

    __slots__ = ()

    def __init__(
        self, connection_parameters: "SqliteConnectionParams | dict[str, Any] | None" = None, **kwargs: Any
    ) -> None:
        super().__init__(_normalize_parameters(dict(connection_parameters or {})), **kwargs)

    @property
    def database(self) -> str:
        return str(self._connection_parameters["database"])

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(**self._connection_parameters)
        connection.execute("PRAGMA foreign_keys = ON")
        return connection
