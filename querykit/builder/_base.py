"""Shared rendering behaviour for query builders."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings

__all__ = ("QueryBase",)


class QueryBase:
    """Root of every builder: holds the dialect and maps ``str()`` to :meth:`to_sql`.

    Builders are mutable while clauses are added; rendering reads state only,
    so one builder may be rendered any number of times.
    """

    __slots__ = ("__weakref__", "settings")

    def __init__(self, settings: "DialectSettings") -> None:
        self.settings = settings

    def to_sql(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_sql()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.settings.name!r})"
