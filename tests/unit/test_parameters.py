"""Unit tests for parameter creation, extraction and placeholder conversion."""

import pytest

from querykit.dialects import MYSQL
from querykit.exceptions import InvalidIdentifierError, MissingParameterError
from querykit.parameters import (
    Parameter,
    ParameterStyle,
    bind_values,
    convert_placeholders,
    create_parameter,
    extract_parameters,
)


class TestCreateParameter:
    def test_marker_is_normalized(self) -> None:
        for name in ("characterID", "@characterID"):
            parameter = create_parameter(MYSQL, name, value=5)
            assert parameter.name == "characterID"
            assert parameter.parameter_name == "@characterID"
            assert parameter.value == 5

    @pytest.mark.parametrize("name", ["", "@", "a b"])
    def test_invalid_names(self, name: str) -> None:
        with pytest.raises(InvalidIdentifierError):
            create_parameter(MYSQL, name)


def test_extract_parameters_skips_literals_and_comments() -> None:
    sql = (
        "SELECT '@not', \"@nope\", `@col`, @@session.time_zone FROM t "
        "WHERE a = @a -- @comment\n AND b = @b /* @block */ AND c = @a"
    )
    infos = extract_parameters(sql)
    assert [info.name for info in infos] == ["a", "b", "a"]
    assert infos[0].placeholder_text == "@a"
    assert sql[infos[0].position :].startswith("@a")


class TestConvertPlaceholders:
    def test_named_at_is_unchanged(self) -> None:
        sql = "SELECT * FROM t WHERE a LIKE '%x' AND b = @b"
        assert convert_placeholders(sql, ParameterStyle.NAMED_AT) == sql

    def test_pyformat(self) -> None:
        sql = "SELECT * FROM t WHERE a = @a AND b = @b"
        assert convert_placeholders(sql, ParameterStyle.NAMED_PYFORMAT) == (
            "SELECT * FROM t WHERE a = %(a)s AND b = %(b)s"
        )

    def test_pyformat_doubles_percent(self) -> None:
        sql = "SELECT 7 % 2, '@lit' FROM t WHERE a LIKE @pattern"
        assert convert_placeholders(sql, ParameterStyle.NAMED_PYFORMAT) == (
            "SELECT 7 %% 2, '@lit' FROM t WHERE a LIKE %(pattern)s"
        )


class TestBindValues:
    def test_keys_with_or_without_marker(self) -> None:
        bound = bind_values("SELECT @a, @b", {"a": 1, "@b": 2}, MYSQL)
        assert bound == {"a": 1, "b": 2}

    def test_parameter_objects(self) -> None:
        parameter = Parameter(name="a", parameter_name="@a", value="x")
        assert bind_values("SELECT @a", {"anything": parameter}, MYSQL) == {"a": "x"}

    def test_unused_values_are_dropped(self) -> None:
        assert bind_values("SELECT @a", {"a": 1, "extra": 2}, MYSQL) == {"a": 1}

    def test_repeated_placeholder_is_bound_once(self) -> None:
        assert bind_values("SELECT @a + @a", {"a": 3}, MYSQL) == {"a": 3}

    def test_missing_values_raise(self) -> None:
        with pytest.raises(MissingParameterError) as exc_info:
            bind_values("SELECT @a, @b, @b", {"a": 1}, MYSQL)
        assert "@b" in str(exc_info.value)
        assert exc_info.value.sql == "SELECT @a, @b, @b"

    def test_no_placeholders(self) -> None:
        assert bind_values("SELECT 1", None, MYSQL) == {}
