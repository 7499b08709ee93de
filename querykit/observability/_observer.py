"""Query observer primitives for SQL execution events."""

from collections.abc import Callable
from dataclasses import dataclass
from time import time
from typing import Any, Optional

from querykit.utils.logging import get_correlation_id, get_logger

__all__ = ("LoggingCollector", "QueryEvent", "QueryObserver", "create_event", "format_query_event")


logger = get_logger("observability")


QueryObserver = Callable[["QueryEvent"], None]


@dataclass(slots=True)
class QueryEvent:
    """Structured payload describing one executed statement."""

    sql: str
    operation: str
    adapter: str
    rows_affected: Optional[int]
    duration_s: float
    started_at: float
    deferred: bool
    correlation_id: Optional[str]

    def as_dict(self) -> "dict[str, Any]":
        return {
            "sql": self.sql,
            "operation": self.operation,
            "adapter": self.adapter,
            "rows_affected": self.rows_affected,
            "duration_s": self.duration_s,
            "started_at": self.started_at,
            "deferred": self.deferred,
            "correlation_id": self.correlation_id,
        }


def format_query_event(event: QueryEvent) -> str:
    """Create a concise human-readable representation of a query event."""
    mode_label = "deferred" if event.deferred else "direct"
    rows_label = "rows=%s" % (event.rows_affected if event.rows_affected is not None else "unknown")
    return (
        f"[{event.adapter}] {event.operation} ({mode_label}, {rows_label}, duration={event.duration_s:.6f}s)\n"
        f"SQL: {event.sql}"
    )


class LoggingCollector:
    """Statistics collector that logs every event at DEBUG level."""

    __slots__ = ()

    def record(self, event: QueryEvent) -> None:
        logger.debug(format_query_event(event), extra={"extra_fields": event.as_dict()})


def create_event(
    *,
    sql: str,
    operation: str,
    adapter: str,
    rows_affected: Optional[int],
    duration_s: float,
    deferred: bool = False,
    started_at: Optional[float] = None,
    correlation_id: Optional[str] = None,
) -> QueryEvent:
    """Factory helper used by the runner to build query events."""
    return QueryEvent(
        sql=sql,
        operation=operation,
        adapter=adapter,
        rows_affected=rows_affected,
        duration_s=duration_s,
        started_at=started_at if started_at is not None else time(),
        deferred=deferred,
        correlation_id=correlation_id if correlation_id is not None else get_correlation_id(),
    )
