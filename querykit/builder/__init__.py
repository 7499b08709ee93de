"""Fluent SQL builders bound to a :class:`~querykit.dialects.DialectSettings` value.

Example::

    from querykit.builder import QueryBuilder

    qb = QueryBuilder("mysql")
    s, f = qb.settings, qb.functions
    sql = str(
        qb.select("active_trade_item")
        .add("item_id")
        .where(f.equals(s.escape_column("character_id"), s.parameterize("characterID")))
    )
"""

from typing import Optional, Union

from querykit.builder._base import QueryBase
from querykit.builder._call import CallProcedureQuery
from querykit.builder._columns import ColumnList, ColumnValueCollection, flatten_names
from querykit.builder._delete import DeleteQuery
from querykit.builder._filter import OrderBy, ResultFilter
from querykit.builder._insert import InsertQuery, OnDuplicateKeyUpdateQuery, ReplaceQuery
from querykit.builder._select import SelectFunctionQuery, SelectQuery
from querykit.builder._update import UpdateQuery
from querykit.dialects import DialectSettings, Functions, QueryIntervalType, get_dialect, get_functions

__all__ = (
    "CallProcedureQuery",
    "ColumnList",
    "ColumnValueCollection",
    "DeleteQuery",
    "Functions",
    "InsertQuery",
    "OnDuplicateKeyUpdateQuery",
    "OrderBy",
    "QueryBase",
    "QueryBuilder",
    "QueryIntervalType",
    "ReplaceQuery",
    "ResultFilter",
    "SelectFunctionQuery",
    "SelectQuery",
    "UpdateQuery",
    "flatten_names",
)


class QueryBuilder:
    """Entry point creating builders for one dialect.

    Args:
        dialect: A dialect name (``"mysql"``, ``"sqlite"``) or a settings value.
        functions: Expression helpers; defaults to the dialect's registered helpers.
    """

    __slots__ = ("_functions", "_settings")

    def __init__(self, dialect: Union[str, DialectSettings] = "mysql", functions: Optional[Functions] = None) -> None:
        self._settings = get_dialect(dialect)
        self._functions = functions if functions is not None else get_functions(self._settings)

    @property
    def settings(self) -> DialectSettings:
        return self._settings

    @property
    def functions(self) -> Functions:
        return self._functions

    def select(self, table: str, alias: Optional[str] = None) -> SelectQuery:
        return SelectQuery(self._settings, table, alias)

    def select_function(self, function: str) -> SelectFunctionQuery:
        return SelectFunctionQuery(self._settings, function)

    def insert(self, table: str) -> InsertQuery:
        return InsertQuery(self._settings, table)

    def replace(self, table: str) -> ReplaceQuery:
        return ReplaceQuery(self._settings, table)

    def update(self, table: str) -> UpdateQuery:
        return UpdateQuery(self._settings, table)

    def delete(self, table: str) -> DeleteQuery:
        return DeleteQuery(self._settings, table)

    def call_procedure(self, procedure: str) -> CallProcedureQuery:
        return CallProcedureQuery(self._settings, procedure)

    def __repr__(self) -> str:
        return f"QueryBuilder({self._settings.name!r})"
