"""UPDATE builder."""

from typing import TYPE_CHECKING

from typing_extensions import Self

from querykit.builder._base import QueryBase
from querykit.builder._columns import ColumnValueCollection, ColumnValueMixin
from querykit.builder._filter import FilterMixin, ResultFilter

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings

__all__ = ("UpdateQuery",)


class UpdateQuery(QueryBase, ColumnValueMixin, FilterMixin):
    """Builds ``UPDATE <table> SET col=value[,...]`` followed by the filter clauses.

    Example::

        qb.update("myTable").add("a", "55").add_auto_param("b").add_param("c", "cParam")
        # UPDATE `myTable` SET `a`=55,`b`=@b,`c`=@cParam
    """

    __slots__ = ("_filter", "_table", "_values")

    def __init__(self, settings: "DialectSettings", table: str) -> None:
        super().__init__(settings)
        settings.validate_table_name(table).unwrap()
        self._table = table
        self._values = ColumnValueCollection(settings)
        self._filter: ResultFilter[Self] = ResultFilter(settings, self)

    @property
    def table(self) -> str:
        return self._table

    def to_sql(self) -> str:
        self._values.require("UPDATE", self._table)
        sql = f"UPDATE {self.settings.escape_table(self._table)} SET {self._values.render_assignments()}"
        return self._append_filter(sql)
