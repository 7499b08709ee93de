"""Reusable, pre-rendered queries and the registry of query sets."""

import threading
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Optional, TypeVar, Union

from querykit.exceptions import ArgumentError, ParameterError
from querykit.parameters import extract_parameters
from querykit.protocols import Renderable

if TYPE_CHECKING:
    from querykit.parameters import Parameter
    from querykit.pool import ConnectionPool
    from querykit.runner import InsertResult, QueryRunner

__all__ = ("DbQuery", "is_registered_query", "register_query")

QueryT = TypeVar("QueryT")


class DbQuery:
    """A statement rendered once and executed many times with different values.

    The SQL text is rendered at construction. Each call leases a pooled
    connection, runs the statement, and frees the connection after any reader
    has been closed.

    Example::

        select_items = DbQuery(
            pool,
            runner,
            qb.select("active_trade_item").add("item_id").where(
                f.equals(s.escape_column("character_id"), s.parameterize("characterID"))
            ),
            ["characterID"],
        )
        rows = select_items.fetch_all(characterID=5)

    Args:
        pool: Pool to lease connections from.
        runner: Runner executing the statement.
        query: A builder or raw SQL text.
        parameter_names: Parameters the statement declares, with or without the marker.

    Raises:
        ArgumentError: The rendered SQL is empty.
        ParameterError: A declared parameter does not appear in the SQL.
    """

    __slots__ = ("_parameters", "_pool", "_runner", "_sql")

    def __init__(
        self,
        pool: "ConnectionPool",
        runner: "QueryRunner",
        query: "Union[str, Renderable]",
        parameter_names: "Iterable[str]" = (),
    ) -> None:
        sql = query.to_sql() if isinstance(query, Renderable) else query
        if not sql:
            msg = "Query text must not be empty"
            raise ArgumentError(msg)
        self._pool = pool
        self._runner = runner
        self._sql = sql
        self._parameters: tuple[Parameter, ...] = tuple(pool.create_parameter(name) for name in parameter_names)

        used = {info.name for info in extract_parameters(sql)}
        for parameter in self._parameters:
            if parameter.name not in used:
                msg = f"Parameter {parameter.parameter_name} is not used by the query"
                raise ParameterError(msg, sql)

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def parameters(self) -> "tuple[Parameter, ...]":
        return self._parameters

    @property
    def has_parameters(self) -> bool:
        return bool(self._parameters)

    @staticmethod
    def _merge(values: "Optional[Mapping[str, Any]]", kwargs: "dict[str, Any]") -> "dict[str, Any]":
        merged = dict(values or {})
        merged.update(kwargs)
        return merged

    def fetch_all(self, values: "Optional[Mapping[str, Any]]" = None, /, **kwargs: Any) -> "list[dict[str, Any]]":
        """Return every row of the result set."""
        with self._pool.provide_connection() as conn, self._runner.execute_reader(
            conn, self._sql, self._merge(values, kwargs)
        ) as reader:
            return reader.fetch_all()

    def fetch_one(self, values: "Optional[Mapping[str, Any]]" = None, /, **kwargs: Any) -> "Optional[dict[str, Any]]":
        """Return the first row, or ``None`` when the result set is empty."""
        with self._pool.provide_connection() as conn, self._runner.execute_reader(
            conn, self._sql, self._merge(values, kwargs)
        ) as reader:
            return reader.fetch_one()

    def execute(self, values: "Optional[Mapping[str, Any]]" = None, /, **kwargs: Any) -> int:
        """Run the statement and return the number of affected rows."""
        with self._pool.provide_connection() as conn:
            return self._runner.execute_non_query(conn, self._sql, self._merge(values, kwargs))

    def insert(self, values: "Optional[Mapping[str, Any]]" = None, /, **kwargs: Any) -> "InsertResult":
        """Run an insert and return the affected rows and generated id."""
        with self._pool.provide_connection() as conn:
            return self._runner.execute_insert(conn, self._sql, self._merge(values, kwargs))

    def enqueue(self, values: "Optional[Mapping[str, Any]]" = None, /, **kwargs: Any) -> None:
        """Defer the statement to the runner connection."""
        self._runner.enqueue(self._sql, self._merge(values, kwargs))

    def __repr__(self) -> str:
        return f"DbQuery({self._sql!r})"


_QUERY_TYPES: "set[type[Any]]" = set()
_QUERY_TYPES_LOCK = threading.Lock()


def register_query(query_type: "type[QueryT]") -> "type[QueryT]":
    """Mark a class as a query set that :meth:`DatabaseConfig.get_query` may build.

    A query set groups the :class:`DbQuery` objects one part of an application
    uses. It is constructed once per configuration with the configuration as its
    only argument, and shared until the pool is closed::

        @register_query
        class CharacterQueries:
            def __init__(self, config: DatabaseConfig) -> None:
                qb = config.provide_query_builder()
                self.insert = DbQuery(
                    config.provide_pool(),
                    config.provide_runner(),
                    qb.insert("character").add_auto_param("name"),
                    ["name"],
                )

        queries = config.get_query(CharacterQueries)

    Raises:
        ArgumentError: ``query_type`` is not a class.
    """
    if not isinstance(query_type, type):
        msg = f"Only classes can be registered as queries, got {query_type!r}"
        raise ArgumentError(msg)
    with _QUERY_TYPES_LOCK:
        _QUERY_TYPES.add(query_type)
    return query_type


def is_registered_query(query_type: "type[Any]") -> bool:
    with _QUERY_TYPES_LOCK:
        return query_type in _QUERY_TYPES
