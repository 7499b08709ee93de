"""Execution events and statistics collectors for the query runner."""

from querykit.observability._collector import QueryStats, QueryStatsCollector
from querykit.observability._observer import (
    LoggingCollector,
    QueryEvent,
    QueryObserver,
    create_event,
    format_query_event,
)

__all__ = (
    "LoggingCollector",
    "QueryEvent",
    "QueryObserver",
    "QueryStats",
    "QueryStatsCollector",
    "create_event",
    "format_query_event",
)
