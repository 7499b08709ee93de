"""SELECT and stored-function SELECT builders."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional, Union

from typing_extensions import Self

from querykit.builder._base import QueryBase
from querykit.builder._columns import ColumnList, flatten_names
from querykit.builder._filter import FilterMixin, ResultFilter
from querykit.exceptions import ArgumentError, EmptyColumnListError

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings

__all__ = ("SelectFunctionQuery", "SelectQuery")


class SelectQuery(QueryBase, FilterMixin):
    """Builds ``SELECT [DISTINCT] <columns> FROM <table> [AS alias] [joins] [filter]``.

    Example::

        qb.select("active_trade_item").add("item_id").where(
            f.equals(s.escape_column("character_id"), s.parameterize("characterID"))
        )
    """

    __slots__ = ("_alias", "_columns", "_distinct", "_filter", "_joins", "_table")

    def __init__(self, settings: "DialectSettings", table: str, alias: Optional[str] = None) -> None:
        super().__init__(settings)
        settings.validate_table_name(table).unwrap()
        if alias is not None:
            settings.validate_table_alias(alias).unwrap()
        self._table = table
        self._alias = alias
        self._distinct = False
        self._columns = ColumnList(settings)
        self._joins: list[str] = []
        self._filter: ResultFilter[Self] = ResultFilter(settings, self)

    @property
    def table(self) -> str:
        return self._table

    @property
    def alias(self) -> Optional[str]:
        return self._alias

    @property
    def columns(self) -> "tuple[str, ...]":
        return tuple(self._columns)

    def distinct(self) -> Self:
        self._distinct = True
        return self

    def add(self, *columns: Union[str, Iterable[str]]) -> Self:
        """Add column names, escaped through the dialect. Duplicates are ignored."""
        for column in flatten_names(columns):
            self._columns.add(column)
        return self

    def add_func(self, expression: str, alias: Optional[str] = None) -> Self:
        """Add a raw expression such as a :class:`~querykit.dialects.Functions` result."""
        self._columns.add_raw(expression, alias)
        return self

    def all_columns(self, table_alias: Optional[str] = None) -> Self:
        """Select ``*``, or ``<table_alias>.*`` when an alias is given."""
        if table_alias is None:
            self._columns.add_raw("*")
        else:
            self.settings.validate_table_alias(table_alias).unwrap()
            self._columns.add_raw(f"{table_alias}.*")
        return self

    def remove(self, *columns: str) -> Self:
        for column in flatten_names(columns):
            self._columns.remove(column)
        return self

    def _join(self, kind: str, table: str, alias: Optional[str], condition: str) -> Self:
        self.settings.validate_table_name(table).unwrap()
        if not condition:
            msg = f"{kind} JOIN on {table!r} requires a condition"
            raise ArgumentError(msg)
        fragment = f"{kind} JOIN {self.settings.escape_table(table)}"
        if alias is not None:
            self.settings.validate_table_alias(alias).unwrap()
            fragment = f"{fragment} {alias}"
        self._joins.append(f"{fragment} ON {condition}")
        return self

    def inner_join(self, table: str, alias: Optional[str], condition: str) -> Self:
        return self._join("INNER", table, alias, condition)

    def left_join(self, table: str, alias: Optional[str], condition: str) -> Self:
        return self._join("LEFT", table, alias, condition)

    def right_join(self, table: str, alias: Optional[str], condition: str) -> Self:
        return self._join("RIGHT", table, alias, condition)

    def inner_join_on_column(self, table: str, alias: str, column: str, other_alias: str, other_column: str) -> Self:
        """Join ``table`` where ``alias.column`` equals ``other_alias.other_column``."""
        return self.inner_join(table, alias, f"{alias}.{column}={other_alias}.{other_column}")

    def to_sql(self) -> str:
        settings = self.settings
        columns = self._columns.render("SELECT", self._table)
        table = settings.apply_table_alias(settings.escape_table(self._table), self._alias)
        sql = f"SELECT {'DISTINCT ' if self._distinct else ''}{columns} FROM {table}"
        if self._joins:
            sql = f"{sql} {' '.join(self._joins)}"
        return self._append_filter(sql)


class SelectFunctionQuery(QueryBase):
    """Builds ``SELECT <function>(<arg>,...)`` for stored functions."""

    __slots__ = ("_arguments", "_function")

    _keyword = "SELECT"

    def __init__(self, settings: "DialectSettings", function: str) -> None:
        super().__init__(settings)
        settings.validate_table_name(function).unwrap()
        self._function = function
        self._arguments: list[str] = []

    @property
    def function(self) -> str:
        return self._function

    @property
    def arguments(self) -> "tuple[str, ...]":
        return tuple(self._arguments)

    def add(self, *expressions: Union[str, Iterable[str]]) -> Self:
        """Append raw argument expressions in order."""
        self._arguments.extend(flatten_names(expressions))
        return self

    def add_param(self, *names: Union[str, Iterable[str]]) -> Self:
        """Append parameter arguments, prefixing the parameter marker."""
        for name in flatten_names(names):
            self.settings.validate_parameter_name(name).unwrap()
            self._arguments.append(self.settings.parameterize(name))
        return self

    def _render_arguments(self) -> str:
        if not self._arguments:
            raise EmptyColumnListError(f"{self._keyword} function", self._function)
        return ",".join(self._arguments)

    def to_sql(self) -> str:
        return f"{self._keyword} {self._function}({self._render_arguments()})"
