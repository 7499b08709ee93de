"""Unit tests for SELECT and stored-function SELECT rendering."""

import pytest

from querykit.builder import OrderBy, QueryBuilder, QueryIntervalType
from querykit.exceptions import ArgumentError, EmptyColumnListError, InvalidIdentifierError


def test_select_with_join_and_filter(qb: QueryBuilder) -> None:
    sql = (
        qb.select("myTable", "t")
        .distinct()
        .all_columns("t")
        .add("u.a")
        .inner_join_on_column("t2", "u", "a", "t", "a")
        .order_by("t.a")
        .limit(1)
        .to_sql()
    )
    assert sql == "SELECT DISTINCT t.*,u.a FROM `myTable` AS t INNER JOIN `t2` u ON u.a=t.a ORDER BY t.a LIMIT 1"


def test_select_columns_and_order(qb: QueryBuilder) -> None:
    query = qb.select("myTable").add("a", "b").add(["c"]).order_by_column("a").order_by_column("b", OrderBy.DESC)
    assert str(query) == "SELECT `a`,`b`,`c` FROM `myTable` ORDER BY `a`, `b` DESC"


def test_select_characters_by_parameter(qb: QueryBuilder) -> None:
    s, f = qb.settings, qb.functions
    query = qb.select("active_trade_item").add("item_id").where(
        f.equals(s.escape_column("character_id"), s.parameterize("characterID"))
    )
    assert query.to_sql() == "SELECT `item_id` FROM `active_trade_item` WHERE `character_id` = @characterID"


def test_select_functions(qb: QueryBuilder) -> None:
    f = qb.functions
    assert qb.select("myTable").add_func(f.abs("-5"), "a").to_sql() == "SELECT ABS(-5) AS a FROM `myTable`"
    assert qb.select("myTable").add_func(f.count(), "c").to_sql() == "SELECT COUNT(*) AS c FROM `myTable`"
    assert (
        qb.select("myTable").add_func(f.date_add_interval(f.now(), QueryIntervalType.MINUTE, 5)).to_sql()
        == "SELECT DATE_ADD(NOW(),INTERVAL 5 MINUTE) FROM `myTable`"
    )
    assert (
        qb.select("myTable").add_func(f.date_subtract_interval(f.now(), f.interval(QueryIntervalType.HOUR, 5))).to_sql()
        == "SELECT DATE_SUB(NOW(),INTERVAL 5 HOUR) FROM `myTable`"
    )
    assert qb.select("myTable").add_func(f.is_not_null("'a'")).to_sql() == "SELECT 'a' IS NOT NULL FROM `myTable`"


def test_select_all_columns(qb: QueryBuilder) -> None:
    assert qb.select("myTable").all_columns().to_sql() == "SELECT * FROM `myTable`"


def test_duplicate_columns_are_ignored(qb: QueryBuilder) -> None:
    query = qb.select("myTable").add("a", "A", "`a`", "b")
    assert query.columns == ("`a`", "`b`")


def test_remove_column(qb: QueryBuilder) -> None:
    query = qb.select("myTable").add("a", "b").remove("A")
    assert query.to_sql() == "SELECT `b` FROM `myTable`"


def test_empty_column_list_raises(qb: QueryBuilder) -> None:
    query = qb.select("myTable")
    with pytest.raises(EmptyColumnListError) as exc_info:
        query.to_sql()
    assert exc_info.value.table == "myTable"


def test_left_and_right_joins(qb: QueryBuilder) -> None:
    query = qb.select("a", "x").add("x.id").left_join("b", "y", "y.id=x.id").right_join("c", None, "c.id=x.id")
    assert query.to_sql() == "SELECT x.id FROM `a` AS x LEFT JOIN `b` y ON y.id=x.id RIGHT JOIN `c` ON c.id=x.id"


def test_join_requires_condition(qb: QueryBuilder) -> None:
    with pytest.raises(ArgumentError, match="requires a condition"):
        qb.select("a").inner_join("b", "y", "")


@pytest.mark.parametrize(("table", "alias"), [("", None), ("my table", None), ("t", ""), ("t", "a b")])
def test_invalid_identifiers(qb: QueryBuilder, table: str, alias: "str | None") -> None:
    with pytest.raises(InvalidIdentifierError):
        qb.select(table, alias)


def test_render_is_repeatable(qb: QueryBuilder) -> None:
    query = qb.select("myTable").add("a").where("`a` = 1")
    assert query.to_sql() == query.to_sql() == str(query)


def test_sqlite_rendering(sqlite_qb: QueryBuilder) -> None:
    query = sqlite_qb.select("item").add("id").where(sqlite_qb.functions.is_null('"name"')).limit(5).offset(10)
    assert query.to_sql() == 'SELECT "id" FROM "item" WHERE "name" IS NULL LIMIT 5 OFFSET 10'


class TestSelectFunction:
    """Stored-function SELECT rendering."""

    def test_arguments_and_parameters(self, qb: QueryBuilder) -> None:
        query = qb.select_function("MyFunc").add("5", "a", "x", "b").add_param("assd")
        assert query.to_sql() == "SELECT MyFunc(5,a,x,b,@assd)"
        assert query.arguments == ("5", "a", "x", "b", "@assd")

    def test_parameter_marker_not_doubled(self, qb: QueryBuilder) -> None:
        assert qb.select_function("MyFunc").add_param("@a").to_sql() == "SELECT MyFunc(@a)"

    def test_empty_arguments_raise(self, qb: QueryBuilder) -> None:
        with pytest.raises(EmptyColumnListError, match="MyFunc"):
            qb.select_function("MyFunc").to_sql()
