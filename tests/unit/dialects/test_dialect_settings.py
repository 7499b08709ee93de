"""Unit tests for identifier escaping, validation and parameter markers."""

import dataclasses

import pytest

from querykit.dialects import MYSQL, SQLITE, DialectSettings, get_dialect, get_functions
from querykit.dialects._functions import SqliteFunctions
from querykit.exceptions import ImproperConfigurationError, InvalidIdentifierError
from querykit.result import Err, Ok


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("myTable", "`myTable`"),
        ("`myTable`", "`myTable`"),
        ("t.a", "t.a"),
        ("COUNT(*)", "COUNT(*)"),
        ("a b", "a b"),
        ("we`ird", "`we``ird`"),
    ],
)
def test_mysql_escape(name: str, expected: str) -> None:
    assert MYSQL.escape_column(name) == expected
    assert MYSQL.escape_table(name) == expected


def test_sqlite_escape_uses_double_quotes() -> None:
    assert SQLITE.escape_column("item_id") == '"item_id"'
    assert SQLITE.escape_table('"already"') == '"already"'


def test_parameterize_adds_marker_once() -> None:
    assert MYSQL.parameterize("characterID") == "@characterID"
    assert MYSQL.parameterize("@characterID") == "@characterID"
    assert MYSQL.strip_parameter_marker("@a") == "a"
    assert MYSQL.strip_parameter_marker("a") == "a"


@pytest.mark.parametrize("value", [None, "", "with space"])
def test_validators_return_err(value: "str | None") -> None:
    result = MYSQL.validate_column_name(value)
    assert isinstance(result, Err)
    assert not result
    assert isinstance(result.error, InvalidIdentifierError)
    assert result.error.kind == "column name"
    assert not MYSQL.is_valid_column_name(value)
    assert not MYSQL.is_valid_table_name(value)
    assert not MYSQL.is_valid_column_alias(value)
    assert not MYSQL.is_valid_table_alias(value)


def test_validators_return_ok() -> None:
    result = MYSQL.validate_table_name("myTable")
    assert result == Ok("myTable")
    assert result.unwrap() == "myTable"
    assert MYSQL.is_valid_parameter_name("@a")


def test_parameter_marker_alone_is_invalid() -> None:
    result = MYSQL.validate_parameter_name("@")
    assert result.is_err()
    with pytest.raises(InvalidIdentifierError, match="only a parameter marker"):
        result.unwrap()


def test_alias_application() -> None:
    assert MYSQL.apply_column_alias("COUNT(*)", "c") == "COUNT(*) AS c"
    assert MYSQL.apply_column_alias("COUNT(*)", None) == "COUNT(*)"
    assert MYSQL.apply_table_alias("`myTable`", "t") == "`myTable` AS t"
    with pytest.raises(InvalidIdentifierError):
        MYSQL.apply_table_alias("`myTable`", "")


def test_column_comparison_is_case_insensitive() -> None:
    assert MYSQL.columns_equal("ItemID", "itemid")
    assert MYSQL.columns_equal("`a`", "A")
    strict = dataclasses.replace(MYSQL, name="strict", case_insensitive_columns=False)
    assert not strict.columns_equal("ItemID", "itemid")


def test_settings_are_immutable() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        MYSQL.identifier_quote = '"'  # type: ignore[misc]


def test_get_dialect() -> None:
    assert get_dialect("MySQL") is MYSQL
    assert get_dialect(SQLITE) is SQLITE
    with pytest.raises(ImproperConfigurationError, match="Unknown dialect"):
        get_dialect("oracle")


def test_get_functions() -> None:
    assert isinstance(get_functions("sqlite"), SqliteFunctions)
    custom = DialectSettings(name="custom", sqlglot_dialect="mysql")
    assert type(get_functions(custom)).__name__ == "Functions"
