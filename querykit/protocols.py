"""Runtime-checkable protocols for builders, DB-API objects and collectors."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from typing_extensions import Self

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings
    from querykit.observability import QueryEvent

__all__ = (
    "CursorProtocol",
    "DBAPIConnectionProtocol",
    "HasColumnList",
    "HasWhereClause",
    "Renderable",
    "StatisticsCollector",
)


@runtime_checkable
class Renderable(Protocol):
    """Anything that renders to final SQL text."""

    settings: "DialectSettings"

    def to_sql(self) -> str: ...


@runtime_checkable
class HasWhereClause(Protocol):
    """Builders that accept WHERE / ORDER BY / LIMIT clauses."""

    def where(self, condition: str) -> Self: ...

    def order_by(self, value: str, order: Any = ...) -> Self: ...

    def limit(self, count: int) -> Self: ...


@runtime_checkable
class HasColumnList(Protocol):
    """Builders holding an ordered column list."""

    @property
    def columns(self) -> "tuple[str, ...]": ...

    def remove(self, *columns: str) -> Self: ...


@runtime_checkable
class CursorProtocol(Protocol):
    """The subset of a DB-API 2.0 cursor used by the runner."""

    description: Optional[Sequence[Sequence[Any]]]
    rowcount: int
    lastrowid: Any

    def execute(self, operation: str, parameters: Any = ...) -> Any: ...

    def fetchone(self) -> Any: ...

    def fetchmany(self, size: int = ...) -> Any: ...

    def close(self) -> Any: ...


@runtime_checkable
class DBAPIConnectionProtocol(Protocol):
    """The subset of a DB-API 2.0 connection used by the pool."""

    def cursor(self) -> Any: ...

    def commit(self) -> Any: ...

    def rollback(self) -> Any: ...

    def close(self) -> Any: ...


@runtime_checkable
class StatisticsCollector(Protocol):
    """Receives one event per executed statement."""

    def record(self, event: "QueryEvent") -> None: ...

