"""Ordered column collections shared by the query builders."""

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Optional, Union

from typing_extensions import Self

from querykit.exceptions import EmptyColumnListError

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings

__all__ = ("ColumnList", "ColumnValueCollection", "ColumnValueMixin", "flatten_names")


def flatten_names(values: "Iterable[Union[str, Iterable[str]]]") -> "list[str]":
    """Flatten strings and iterables of strings into one list of names."""
    names: list[str] = []
    for value in values:
        if isinstance(value, str):
            names.append(value)
        else:
            names.extend(value)
    return names


class ColumnList:
    """Rendered column expressions of a SELECT, keyed by the dialect's column comparer."""

    __slots__ = ("_entries", "_settings")

    def __init__(self, settings: "DialectSettings") -> None:
        self._settings = settings
        self._entries: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> "Iterator[str]":
        return iter(self._entries.values())

    def add(self, column: str) -> None:
        """Validate and escape a column name; duplicates are ignored."""
        self._settings.validate_column_name(column).unwrap()
        self._entries.setdefault(self._settings.column_key(column), self._settings.escape_column(column))

    def add_raw(self, expression: str, alias: Optional[str] = None) -> None:
        """Add a pre-rendered expression, optionally aliased, without escaping."""
        sql = self._settings.apply_column_alias(expression, alias)
        self._entries.setdefault(self._settings.column_key(sql), sql)

    def remove(self, column: str) -> bool:
        return self._entries.pop(self._settings.column_key(column), None) is not None

    def render(self, query_kind: str, table: Optional[str] = None) -> str:
        if not self._entries:
            raise EmptyColumnListError(query_kind, table)
        return ",".join(self._entries.values())


class ColumnValueCollection:
    """Ordered ``column -> SQL value`` pairs for INSERT, UPDATE and upsert clauses.

    Adding a column that is already present replaces its value and moves it to
    the end of the collection.
    """

    __slots__ = ("_items", "_settings")

    def __init__(self, settings: "DialectSettings") -> None:
        self._settings = settings
        self._items: dict[str, tuple[str, str]] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    @property
    def columns(self) -> "tuple[str, ...]":
        return tuple(column for column, _ in self._items.values())

    def items(self) -> "list[tuple[str, str]]":
        return list(self._items.values())

    def add(self, column: str, value: str) -> None:
        self._settings.validate_column_name(column).unwrap()
        key = self._settings.column_key(column)
        self._items.pop(key, None)
        self._items[key] = (column, value)

    def add_param(self, column: str, parameter: str) -> None:
        self._settings.validate_parameter_name(parameter).unwrap()
        self.add(column, self._settings.parameterize(parameter))

    def add_auto_param(self, columns: "Iterable[str]") -> None:
        for column in columns:
            self.add_param(column, column)

    def remove(self, columns: "Iterable[str]") -> None:
        for column in columns:
            self._items.pop(self._settings.column_key(column), None)

    def contains(self, column: str) -> bool:
        return self._settings.column_key(column) in self._items

    def render_columns(self) -> str:
        return ",".join(self._settings.escape_column(column) for column, _ in self._items.values())

    def render_values(self) -> str:
        return ",".join(value for _, value in self._items.values())

    def render_assignments(self) -> str:
        return ",".join(f"{self._settings.escape_column(column)}={value}" for column, value in self._items.values())

    def require(self, query_kind: str, table: Optional[str] = None) -> None:
        if not self._items:
            raise EmptyColumnListError(query_kind, table)


class ColumnValueMixin:
    """``add`` / ``add_param`` / ``add_auto_param`` / ``remove`` over an owned :class:`ColumnValueCollection`."""

    __slots__ = ()

    _values: ColumnValueCollection

    @property
    def columns(self) -> "tuple[str, ...]":
        return self._values.columns

    def add(self, column: str, value: str) -> "Self":
        """Set ``column`` to a raw SQL value, moving it to the end if already present."""
        self._values.add(column, value)
        return self

    def add_param(self, column: str, parameter: str) -> "Self":
        """Set ``column`` to a named parameter; the marker is added when missing."""
        self._values.add_param(column, parameter)
        return self

    def add_auto_param(self, *columns: "Union[str, Iterable[str]]") -> "Self":
        """Set each column to a parameter of the same name (``col`` -> ``@col``)."""
        self._values.add_auto_param(flatten_names(columns))
        return self

    def remove(self, *columns: "Union[str, Iterable[str]]") -> "Self":
        self._values.remove(flatten_names(columns))
        return self
