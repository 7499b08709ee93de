"""INSERT, REPLACE and insert-or-update builders."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Union

from typing_extensions import Self

from querykit.builder._base import QueryBase
from querykit.builder._columns import ColumnValueCollection, ColumnValueMixin, flatten_names

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings

__all__ = ("InsertQuery", "OnDuplicateKeyUpdateQuery", "ReplaceQuery")


class _RowWriteQuery(QueryBase, ColumnValueMixin):
    """``<keyword> INTO <table> (<columns>) VALUES (<values>)``."""

    __slots__ = ("_table", "_values")

    def __init__(self, settings: "DialectSettings", table: str) -> None:
        super().__init__(settings)
        settings.validate_table_name(table).unwrap()
        self._table = table
        self._values = ColumnValueCollection(settings)

    @property
    def table(self) -> str:
        return self._table

    def items(self) -> "list[tuple[str, str]]":
        """The ``(column, value)`` pairs in render order."""
        return self._values.items()

    def _keyword(self) -> str:
        raise NotImplementedError

    def to_sql(self) -> str:
        keyword = self._keyword()
        self._values.require(keyword, self._table)
        return (
            f"{keyword} INTO {self.settings.escape_table(self._table)} "
            f"({self._values.render_columns()}) VALUES ({self._values.render_values()})"
        )


class InsertQuery(_RowWriteQuery):
    """Builds ``INSERT [IGNORE] INTO``.

    Example::

        qb.insert("active_trade_item").ignore_exists().add_auto_param("item_id", "character_id")
        # INSERT IGNORE INTO `active_trade_item` (`item_id`,`character_id`) VALUES (@item_id,@character_id)
    """

    __slots__ = ("_ignore",)

    def __init__(self, settings: "DialectSettings", table: str) -> None:
        super().__init__(settings, table)
        self._ignore = False

    @property
    def ignores_existing(self) -> bool:
        return self._ignore

    def ignore_exists(self) -> Self:
        """Skip rows whose key already exists, using the dialect's ignore keyword."""
        self._ignore = True
        return self

    def odku(self) -> "OnDuplicateKeyUpdateQuery":
        """Start an update clause applied when the inserted key already exists."""
        return OnDuplicateKeyUpdateQuery(self)

    def _keyword(self) -> str:
        return self.settings.insert_ignore_keyword if self._ignore else "INSERT"


class ReplaceQuery(_RowWriteQuery):
    """Builds ``REPLACE INTO``: delete-then-insert keyed on the primary key."""

    __slots__ = ()

    def _keyword(self) -> str:
        return "REPLACE"


class OnDuplicateKeyUpdateQuery(QueryBase, ColumnValueMixin):
    """The update list applied when an :class:`InsertQuery` hits an existing key.

    Renders the insert followed by the dialect's upsert clause, e.g.
    ``ON DUPLICATE KEY UPDATE `cash`=@cash``. The insert is held by this object
    only; later changes to the insert show up in the rendered SQL.
    """

    __slots__ = ("_insert", "_values")

    def __init__(self, insert: InsertQuery) -> None:
        super().__init__(insert.settings)
        self._insert = insert
        self._values = ColumnValueCollection(insert.settings)

    @property
    def insert(self) -> InsertQuery:
        return self._insert

    def add_from_insert(self, *key_columns: Union[str, Iterable[str]]) -> Self:
        """Copy every column of the insert except ``key_columns``, with the insert's value."""
        settings = self.settings
        keys = {settings.column_key(column) for column in flatten_names(key_columns)}
        for column, value in self._insert.items():
            if settings.column_key(column) not in keys:
                self._values.add(column, value)
        return self

    def to_sql(self) -> str:
        clause = self.settings.upsert_clause
        self._values.require(clause, self._insert.table)
        return f"{self._insert.to_sql()} {clause} {self._values.render_assignments()}"
