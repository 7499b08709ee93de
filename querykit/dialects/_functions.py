"""SQL expression helpers used to compose predicates and computed columns.

Each helper returns plain SQL text, so results nest freely::

    f = builder.functions
    f.and_(f.equals(s.escape_column("a"), "@a"), f.is_not_null("b"))
"""

from collections.abc import Iterable
from enum import Enum
from typing import Optional, Union

from querykit.exceptions import ArgumentError

__all__ = ("Functions", "QueryIntervalType", "SqliteFunctions")


class QueryIntervalType(str, Enum):
    """Units accepted by interval arithmetic."""

    MICROSECOND = "MICROSECOND"
    SECOND = "SECOND"
    MINUTE = "MINUTE"
    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"


def _require(name: str, value: Optional[str]) -> str:
    if value is None or value == "":
        msg = f"Argument {name!r} must be a non-empty SQL expression"
        raise ArgumentError(msg)
    return value


class Functions:
    """Expression helpers producing MySQL-compatible SQL.

    Dialects with different spellings subclass this and override the
    affected helpers.
    """

    __slots__ = ()

    def _binary(self, left: str, operator: str, right: str) -> str:
        return f"{_require('left', left)} {operator} {_require('right', right)}"

    # -- comparisons --
    def equals(self, left: str, right: str) -> str:
        return self._binary(left, "=", right)

    def not_equal(self, left: str, right: str) -> str:
        return self._binary(left, "!=", right)

    def greater_than(self, left: str, right: str) -> str:
        return self._binary(left, ">", right)

    def greater_or_equal(self, left: str, right: str) -> str:
        return self._binary(left, ">=", right)

    def less_than(self, left: str, right: str) -> str:
        return self._binary(left, "<", right)

    def less_or_equal(self, left: str, right: str) -> str:
        return self._binary(left, "<=", right)

    def is_null(self, expr: str) -> str:
        return f"{_require('expr', expr)} IS NULL"

    def is_not_null(self, expr: str) -> str:
        return f"{_require('expr', expr)} IS NOT NULL"

    # -- boolean combinators --
    def and_(self, left: str, right: str) -> str:
        return self._binary(left, "AND", right)

    def or_(self, left: str, right: str) -> str:
        return self._binary(left, "OR", right)

    def xor(self, left: str, right: str) -> str:
        return self._binary(left, "XOR", right)

    def not_(self, expr: str) -> str:
        return f"NOT {_require('expr', expr)}"

    def group(self, expr: str) -> str:
        """Wrap an expression in parentheses."""
        return f"({_require('expr', expr)})"

    # -- arithmetic --
    def add(self, left: str, right: str) -> str:
        return self._binary(left, "+", right)

    def subtract(self, left: str, right: str) -> str:
        return self._binary(left, "-", right)

    def multiply(self, left: str, right: str) -> str:
        return self._binary(left, "*", right)

    def divide(self, left: str, right: str) -> str:
        return self._binary(left, "/", right)

    def mod(self, left: str, right: str) -> str:
        return self._binary(left, "%", right)

    def abs(self, expr: str) -> str:
        return f"ABS({_require('expr', expr)})"

    def ceiling(self, expr: str) -> str:
        return f"CEILING({_require('expr', expr)})"

    def floor(self, expr: str) -> str:
        return f"FLOOR({_require('expr', expr)})"

    # -- bit operations --
    def bit_and(self, left: str, right: str) -> str:
        return self._binary(left, "&", right)

    def bit_or(self, left: str, right: str) -> str:
        return self._binary(left, "|", right)

    def bit_xor(self, left: str, right: str) -> str:
        return self._binary(left, "^", right)

    def bit_not(self, expr: str) -> str:
        return f"~{_require('expr', expr)}"

    # -- functions --
    def coalesce(self, *exprs: Union[str, Iterable[str]]) -> str:
        """Return the first non-null value in a list.

        Args:
            *exprs: The SQL expressions, or a single iterable of them.

        Raises:
            ArgumentError: No expressions were given.

        Returns:
            The SQL string for the function.
        """
        values: list[str] = []
        for expr in exprs:
            if isinstance(expr, str):
                values.append(expr)
            else:
                values.extend(expr)
        if not values:
            msg = "COALESCE requires at least one expression"
            raise ArgumentError(msg)
        return f"COALESCE({','.join(values)})"

    def count(self, expr: Optional[str] = None) -> str:
        if expr is None:
            return "COUNT(*)"
        return f"COUNT({_require('expr', expr)})"

    def default(self, expr: str) -> str:
        return f"DEFAULT({_require('expr', expr)})"

    def now(self) -> str:
        return "NOW()"

    # -- dates --
    def interval(self, interval: QueryIntervalType, value: Union[int, str]) -> str:
        return f"INTERVAL {value} {QueryIntervalType(interval).value}"

    def date_add_interval(
        self, date: str, interval: Union[str, QueryIntervalType], value: Union[int, str, None] = None
    ) -> str:
        """Add an interval to a date expression.

        ``interval`` is either a rendered :meth:`interval` expression, or an
        interval unit combined with ``value``.
        """
        return f"DATE_ADD({_require('date', date)},{self._resolve_interval(interval, value)})"

    def date_subtract_interval(
        self, date: str, interval: Union[str, QueryIntervalType], value: Union[int, str, None] = None
    ) -> str:
        return f"DATE_SUB({_require('date', date)},{self._resolve_interval(interval, value)})"

    def _resolve_interval(self, interval: Union[str, QueryIntervalType], value: Union[int, str, None]) -> str:
        if isinstance(interval, QueryIntervalType):
            if value is None or value == "":
                msg = "An interval value is required when passing an interval unit"
                raise ArgumentError(msg)
            return self.interval(interval, value)
        return _require("interval", interval)


class SqliteFunctions(Functions):
    """Expression helpers for SQLite's date handling and operators."""

    __slots__ = ()

    _SUPPORTED_UNITS = frozenset({
        QueryIntervalType.SECOND,
        QueryIntervalType.MINUTE,
        QueryIntervalType.HOUR,
        QueryIntervalType.DAY,
        QueryIntervalType.MONTH,
        QueryIntervalType.YEAR,
    })

    def xor(self, left: str, right: str) -> str:
        left, right = _require("left", left), _require("right", right)
        return f"(({left}) OR ({right})) AND NOT (({left}) AND ({right}))"

    def ceiling(self, expr: str) -> str:
        return f"CEIL({_require('expr', expr)})"

    def now(self) -> str:
        return "CURRENT_TIMESTAMP"

    def interval(self, interval: QueryIntervalType, value: Union[int, str]) -> str:
        unit = QueryIntervalType(interval)
        if unit not in self._SUPPORTED_UNITS:
            msg = f"SQLite does not support {unit.value} intervals"
            raise ArgumentError(msg)
        if isinstance(value, int):
            return f"'{value} {unit.value.lower()}'"
        return f"{value} || ' {unit.value.lower()}'"

    def date_add_interval(
        self, date: str, interval: Union[str, QueryIntervalType], value: Union[int, str, None] = None
    ) -> str:
        return f"datetime({_require('date', date)},{self._resolve_interval(interval, value)})"

    def date_subtract_interval(
        self, date: str, interval: Union[str, QueryIntervalType], value: Union[int, str, None] = None
    ) -> str:
        return f"datetime({_require('date', date)},'-' || {self._resolve_interval(interval, value)})"
