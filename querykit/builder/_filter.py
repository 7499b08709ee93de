"""WHERE / ORDER BY / LIMIT / OFFSET chain shared by the filterable builders."""

import weakref
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

from typing_extensions import Self

from querykit.exceptions import ArgumentError

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings

__all__ = ("FilterMixin", "OrderBy", "ResultFilter")

OwnerT = TypeVar("OwnerT")


class OrderBy(str, Enum):
    """Sort direction of an ORDER BY item."""

    ASC = "ASC"
    DESC = "DESC"


def _check_count(name: str, count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        msg = f"{name} must be a non-negative integer, got {count!r}"
        raise ArgumentError(msg)
    return count


class ResultFilter(Generic[OwnerT]):
    """Clause chain owned by a query.

    The filter only keeps a weak reference to the query that owns it, so the
    query can be collected as soon as its last strong reference goes away.
    Every method returns the filter itself; the same methods called on the
    owning query return the query instead.
    """

    __slots__ = ("_conditions", "_limit", "_offset", "_order", "_owner_ref", "_settings")

    def __init__(self, settings: "DialectSettings", owner: Optional[OwnerT] = None) -> None:
        self._settings = settings
        self._owner_ref: Optional[weakref.ReferenceType[Any]] = weakref.ref(owner) if owner is not None else None
        self._conditions: list[tuple[str, str]] = []
        self._order: list[tuple[str, OrderBy]] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None

    @property
    def owner(self) -> Optional[OwnerT]:
        """The owning query, or ``None`` once it has been garbage collected."""
        if self._owner_ref is None:
            return None
        return self._owner_ref()  # type: ignore[no-any-return]

    @property
    def is_empty(self) -> bool:
        return not (self._conditions or self._order or self._limit is not None or self._offset is not None)

    def where(self, condition: str) -> Self:
        """Replace the WHERE clause with a single condition."""
        if not condition:
            msg = "WHERE condition must not be empty"
            raise ArgumentError(msg)
        self._conditions = [("", condition)]
        return self

    def and_where(self, condition: str) -> Self:
        return self._append_condition("AND", condition)

    def or_where(self, condition: str) -> Self:
        return self._append_condition("OR", condition)

    def _append_condition(self, connector: str, condition: str) -> Self:
        if not self._conditions:
            return self.where(condition)
        if not condition:
            msg = "WHERE condition must not be empty"
            raise ArgumentError(msg)
        self._conditions.append((connector, condition))
        return self

    def order_by(self, value: str, order: OrderBy = OrderBy.ASC) -> Self:
        """Append a raw ORDER BY expression."""
        if not value:
            msg = "ORDER BY value must not be empty"
            raise ArgumentError(msg)
        self._order.append((value, OrderBy(order)))
        return self

    def order_by_column(self, column: str, order: OrderBy = OrderBy.ASC) -> Self:
        """Append an ORDER BY item for a column name, escaping it."""
        self._settings.validate_column_name(column).unwrap()
        return self.order_by(self._settings.escape_column(column), order)

    def limit(self, count: int) -> Self:
        self._limit = _check_count("LIMIT", count)
        return self

    def offset(self, count: int) -> Self:
        self._offset = _check_count("OFFSET", count)
        return self

    def to_sql(self) -> str:
        """Render the clauses in WHERE, ORDER BY, LIMIT, OFFSET order.

        Returns:
            The clauses separated by single spaces, or an empty string when
            nothing was set.
        """
        parts: list[str] = []
        if self._conditions:
            where = " ".join(
                f"{connector} {condition}" if connector else condition for connector, condition in self._conditions
            )
            parts.append(f"WHERE {where}")
        if self._order:
            items = ", ".join(
                value if order is OrderBy.ASC else f"{value} {order.value}" for value, order in self._order
            )
            parts.append(f"ORDER BY {items}")
        if self._limit is not None:
            parts.append(f"LIMIT {self._limit}")
        if self._offset is not None:
            parts.append(f"OFFSET {self._offset}")
        return " ".join(parts)

    def __str__(self) -> str:
        return self.to_sql()


class FilterMixin:
    """Exposes the owned :class:`ResultFilter` methods on a query, returning the query."""

    __slots__ = ()

    _filter: "ResultFilter[Any]"

    @property
    def filter(self) -> "ResultFilter[Self]":
        return self._filter

    def where(self, condition: str) -> Self:
        self._filter.where(condition)
        return self

    def and_where(self, condition: str) -> Self:
        self._filter.and_where(condition)
        return self

    def or_where(self, condition: str) -> Self:
        self._filter.or_where(condition)
        return self

    def order_by(self, value: str, order: OrderBy = OrderBy.ASC) -> Self:
        self._filter.order_by(value, order)
        return self

    def order_by_column(self, column: str, order: OrderBy = OrderBy.ASC) -> Self:
        self._filter.order_by_column(column, order)
        return self

    def limit(self, count: int) -> Self:
        self._filter.limit(count)
        return self

    def offset(self, count: int) -> Self:
        self._filter.offset(count)
        return self

    def _append_filter(self, sql: str) -> str:
        clauses = self._filter.to_sql()
        return f"{sql} {clauses}" if clauses else sql
