"""Aggregating statistics collector."""

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from querykit.utils.serializers import to_json

if TYPE_CHECKING:
    from querykit.observability._observer import QueryEvent

__all__ = ("QueryStats", "QueryStatsCollector")


@dataclass(slots=True)
class QueryStats:
    """Running totals for one SQL text."""

    sql: str
    operation: str
    count: int = 0
    rows_affected: int = 0
    total_duration_s: float = 0.0
    min_duration_s: float = field(default=float("inf"))
    max_duration_s: float = 0.0

    @property
    def average_duration_s(self) -> float:
        return self.total_duration_s / self.count if self.count else 0.0

    def add(self, event: "QueryEvent") -> None:
        self.count += 1
        self.rows_affected += event.rows_affected or 0
        self.total_duration_s += event.duration_s
        self.min_duration_s = min(self.min_duration_s, event.duration_s)
        self.max_duration_s = max(self.max_duration_s, event.duration_s)

    def as_dict(self) -> "dict[str, Any]":
        return {
            "sql": self.sql,
            "operation": self.operation,
            "count": self.count,
            "rows_affected": self.rows_affected,
            "total_duration_s": self.total_duration_s,
            "average_duration_s": self.average_duration_s,
            "min_duration_s": self.min_duration_s if self.count else 0.0,
            "max_duration_s": self.max_duration_s,
        }


class QueryStatsCollector:
    """Thread-safe per-SQL execution counts and timings.

    Pass an instance as ``statistics`` to :class:`~querykit.runner.QueryRunner`.
    """

    __slots__ = ("_lock", "_stats")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats: dict[str, QueryStats] = {}

    def record(self, event: "QueryEvent") -> None:
        with self._lock:
            stats = self._stats.get(event.sql)
            if stats is None:
                stats = self._stats[event.sql] = QueryStats(sql=event.sql, operation=event.operation)
            stats.add(event)

    def get(self, sql: str) -> "QueryStats | None":
        with self._lock:
            return self._stats.get(sql)

    @property
    def total_count(self) -> int:
        with self._lock:
            return sum(stats.count for stats in self._stats.values())

    def snapshot(self) -> "list[dict[str, Any]]":
        """Per-SQL totals, most executed first."""
        with self._lock:
            ordered = sorted(self._stats.values(), key=lambda stats: stats.count, reverse=True)
            return [stats.as_dict() for stats in ordered]

    def to_json(self) -> str:
        return to_json(self.snapshot())

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()
