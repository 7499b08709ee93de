"""DELETE builder."""

from typing import TYPE_CHECKING

from typing_extensions import Self

from querykit.builder._base import QueryBase
from querykit.builder._filter import FilterMixin, ResultFilter

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings

__all__ = ("DeleteQuery",)


class DeleteQuery(QueryBase, FilterMixin):
    """Builds ``DELETE FROM <table>`` followed by the filter clauses."""

    __slots__ = ("_filter", "_table")

    def __init__(self, settings: "DialectSettings", table: str) -> None:
        super().__init__(settings)
        settings.validate_table_name(table).unwrap()
        self._table = table
        self._filter: ResultFilter[Self] = ResultFilter(settings, self)

    @property
    def table(self) -> str:
        return self._table

    def to_sql(self) -> str:
        return self._append_filter(f"DELETE FROM {self.settings.escape_table(self._table)}")
