"""MySQL connection pool backed by PyMySQL."""

from typing import Any, TypedDict

import pymysql
from typing_extensions import NotRequired

from querykit.dialects import MYSQL
from querykit.parameters import ParameterStyle
from querykit.pool import ConnectionPool

__all__ = ("MySQLConnectionParams", "MySQLConnectionPool")

_ADAPTER_NAME = "mysql"


class MySQLConnectionParams(TypedDict, total=False):
    """PyMySQL connection parameters."""

    host: NotRequired[str]
    port: NotRequired[int]
    user: NotRequired[str]
    password: NotRequired[str]
    database: NotRequired[str]
    unix_socket: NotRequired[str]
    charset: NotRequired[str]
    connect_timeout: NotRequired[int]
    read_timeout: NotRequired[int]
    write_timeout: NotRequired[int]
    autocommit: NotRequired[bool]
    ssl: "NotRequired[dict[str, Any]]"
    init_command: NotRequired[str]


class MySQLConnectionPool(ConnectionPool):
    """Pool of PyMySQL connections.

    Rendered ``@name`` placeholders are rewritten to PyMySQL's ``%(name)s``
    style before execution. Connections default to autocommit.
    """

    settings = MYSQL
    parameter_style = ParameterStyle.NAMED_PYFORMAT
    adapter_name = _ADAPTER_NAME
    test_query = "SELECT 1"

    __slots__ = ()

    def __init__(
        self, connection_parameters: "MySQLConnectionParams | dict[str, Any] | None" = None, **kwargs: Any
    ) -> None:
        params: dict[str, Any] = {"charset": "utf8mb4", "autocommit": True}
        params.update(connection_parameters or {})
        super().__init__(params, **kwargs)

    @property
    def database(self) -> str:
        host = self._connection_parameters.get("unix_socket") or self._connection_parameters.get("host", "localhost")
        return f"{host}/{self._connection_parameters.get('database', '')}"

    def _connect(self) -> "pymysql.connections.Connection":
        return pymysql.connect(**self._connection_parameters)
