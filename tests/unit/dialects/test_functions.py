"""Unit tests for the SQL expression helpers."""

import pytest

from querykit.dialects import MySQLFunctions, QueryIntervalType, SqliteFunctions
from querykit.exceptions import ArgumentError

f = MySQLFunctions()
lite = SqliteFunctions()


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        (f.equals("`a`", "@a"), "`a` = @a"),
        (f.not_equal("a", "1"), "a != 1"),
        (f.greater_than("a", "1"), "a > 1"),
        (f.greater_or_equal("a", "1"), "a >= 1"),
        (f.less_than("a", "1"), "a < 1"),
        (f.less_or_equal("a", "1"), "a <= 1"),
        (f.is_null("a"), "a IS NULL"),
        (f.is_not_null("'a'"), "'a' IS NOT NULL"),
        (f.and_("a", "b"), "a AND b"),
        (f.or_("a", "b"), "a OR b"),
        (f.xor("a", "b"), "a XOR b"),
        (f.not_("a"), "NOT a"),
        (f.group(f.or_("a", "b")), "(a OR b)"),
        (f.add("1", "2"), "1 + 2"),
        (f.subtract("1", "2"), "1 - 2"),
        (f.multiply("1", "2"), "1 * 2"),
        (f.divide("1", "2"), "1 / 2"),
        (f.mod("7", "2"), "7 % 2"),
        (f.abs("-5"), "ABS(-5)"),
        (f.ceiling("1.5"), "CEILING(1.5)"),
        (f.floor("1.5"), "FLOOR(1.5)"),
        (f.bit_and("a", "1"), "a & 1"),
        (f.bit_or("a", "1"), "a | 1"),
        (f.bit_xor("a", "1"), "a ^ 1"),
        (f.bit_not("a"), "~a"),
        (f.count(), "COUNT(*)"),
        (f.count("id"), "COUNT(id)"),
        (f.default("a"), "DEFAULT(a)"),
        (f.now(), "NOW()"),
    ],
)
def test_mysql_expressions(expression: str, expected: str) -> None:
    assert expression == expected


def test_coalesce_accepts_strings_and_iterables() -> None:
    assert f.coalesce("a", "b") == "COALESCE(a,b)"
    assert f.coalesce(["a", "b"], "0") == "COALESCE(a,b,0)"
    with pytest.raises(ArgumentError):
        f.coalesce()


def test_interval_arithmetic() -> None:
    assert f.date_add_interval(f.now(), f.interval(QueryIntervalType.MINUTE, 5)) == "DATE_ADD(NOW(),INTERVAL 5 MINUTE)"
    assert f.date_subtract_interval(f.now(), QueryIntervalType.HOUR, 5) == "DATE_SUB(NOW(),INTERVAL 5 HOUR)"
    assert f.date_add_interval("`created`", QueryIntervalType.DAY, "@days") == "DATE_ADD(`created`,INTERVAL @days DAY)"


def test_interval_unit_requires_value() -> None:
    with pytest.raises(ArgumentError, match="interval value"):
        f.date_add_interval(f.now(), QueryIntervalType.DAY)


@pytest.mark.parametrize("bad", ["", None])
def test_empty_operands_are_rejected(bad: "str | None") -> None:
    with pytest.raises(ArgumentError):
        f.equals(bad, "1")  # type: ignore[arg-type]
    with pytest.raises(ArgumentError):
        f.is_null(bad)  # type: ignore[arg-type]


class TestSqliteFunctions:
    """SQLite spelling of the helpers that differ from MySQL."""

    def test_now(self) -> None:
        assert lite.now() == "CURRENT_TIMESTAMP"

    def test_ceiling(self) -> None:
        assert lite.ceiling("x") == "CEIL(x)"

    def test_xor_is_expanded(self) -> None:
        assert lite.xor("a", "b") == "((a) OR (b)) AND NOT ((a) AND (b))"

    def test_date_arithmetic(self) -> None:
        assert lite.date_add_interval(lite.now(), QueryIntervalType.MINUTE, 5) == (
            "datetime(CURRENT_TIMESTAMP,'5 minute')"
        )
        assert lite.date_subtract_interval("created", QueryIntervalType.DAY, "@days") == (
            "datetime(created,'-' || @days || ' day')"
        )

    def test_unsupported_unit(self) -> None:
        with pytest.raises(ArgumentError, match="WEEK"):
            lite.interval(QueryIntervalType.WEEK, 1)

    def test_shared_helpers_keep_base_spelling(self) -> None:
        assert lite.equals("a", "b") == f.equals("a", "b")
        assert lite.count() == "COUNT(*)"
