"""Binds values to rendered SQL and executes it.

The runner owns one dedicated connection, opened outside the pool, on which
deferred (enqueued) statements run in order. A background worker drains the
queue shortly after statements arrive, and every execution through the
runner flushes what is left first, so a statement never observes the database
before the writes enqueued ahead of it.
"""

import logging
import threading
import time
from collections import deque
from collections.abc import Generator, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from querykit.exceptions import ArgumentError, PoolClosedError, wrap_exceptions
from querykit.observability import create_event
from querykit.parameters import bind_values, convert_placeholders
from querykit.pool import PooledConnection
from querykit.utils.logging import RUNNER_LOGGER_NAME, get_logger, log_with_context
from querykit.utils.statements import classify_statement, returns_rows

if TYPE_CHECKING:
    from types import TracebackType

    from typing_extensions import Self

    from querykit.dialects import DialectSettings
    from querykit.pool import ConnectionPool
    from querykit.protocols import CursorProtocol, DBAPIConnectionProtocol, StatisticsCollector

__all__ = ("DEFAULT_FLUSH_INTERVAL", "InsertResult", "QueryRunner", "RowReader")

logger = get_logger(RUNNER_LOGGER_NAME)

DEFAULT_FLUSH_INTERVAL = 0.01
"""Seconds the flush worker sleeps while the deferred queue is empty."""

ConnectionTarget = Union[PooledConnection, "DBAPIConnectionProtocol", None]


@dataclass(frozen=True, slots=True)
class InsertResult:
    """Outcome of an insert executed with :meth:`QueryRunner.execute_insert`."""

    rows_affected: int
    last_inserted_id: int


@dataclass(frozen=True, slots=True)
class _QueuedStatement:
    sql: str
    statement: str
    parameters: "dict[str, Any]"


class RowReader:
    """Forward-only reader over one result set.

    Rows are returned as dictionaries keyed by column name. The reader is
    closed by :meth:`QueryRunner.execute_reader` when its ``with`` block exits.
    """

    __slots__ = ("_closed", "_column_names", "_cursor", "_rows_read")

    def __init__(self, cursor: "CursorProtocol") -> None:
        self._cursor = cursor
        self._column_names: tuple[str, ...] = tuple(column[0] for column in cursor.description or ())
        self._closed = False
        self._rows_read = 0

    @property
    def column_names(self) -> "tuple[str, ...]":
        return self._column_names

    @property
    def rows_read(self) -> int:
        return self._rows_read

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _row(self, values: "Any") -> "dict[str, Any]":
        self._rows_read += 1
        return dict(zip(self._column_names, values))

    def fetch_one(self) -> "Optional[dict[str, Any]]":
        if self._closed:
            return None
        values = self._cursor.fetchone()
        if values is None:
            return None
        return self._row(values)

    def fetch_many(self, size: int) -> "list[dict[str, Any]]":
        if self._closed:
            return []
        return [self._row(values) for values in self._cursor.fetchmany(size)]

    def fetch_all(self) -> "list[dict[str, Any]]":
        return list(self)

    def __iter__(self) -> "Iterator[dict[str, Any]]":
        while True:
            row = self.fetch_one()
            if row is None:
                return
            yield row

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cursor.close()


class QueryRunner:
    """Executes rendered SQL against pooled connections or the runner connection.

    Args:
        pool: Pool whose dialect, placeholder style and last-insert-id rules apply.
        statistics: Optional collector receiving one event per executed statement.
        wrap_exceptions: Re-raise driver errors as :class:`~querykit.exceptions.QueryExecutionError`.
        flush_interval: Seconds the background worker sleeps while the deferred queue
            is empty. ``None`` starts no worker; enqueued statements then run only on
            :meth:`flush`, before the next execution, or on :meth:`close`.
    """

    __slots__ = (
        "_closed",
        "_connection",
        "_execute_lock",
        "_flush_interval",
        "_pool",
        "_queue",
        "_queue_lock",
        "_statistics",
        "_stopping",
        "_worker",
        "_worker_errors",
        "_wrap_exceptions",
    )

    def __init__(
        self,
        pool: "ConnectionPool",
        *,
        statistics: "Optional[StatisticsCollector]" = None,
        wrap_exceptions: bool = False,
        flush_interval: Optional[float] = DEFAULT_FLUSH_INTERVAL,
    ) -> None:
        if flush_interval is not None and flush_interval <= 0:
            msg = f"flush_interval must be positive, got {flush_interval}"
            raise ArgumentError(msg)
        self._pool = pool
        self._statistics = statistics
        self._wrap_exceptions = wrap_exceptions
        self._flush_interval = flush_interval
        self._execute_lock = threading.RLock()
        self._queue_lock = threading.Lock()
        self._queue: deque[_QueuedStatement] = deque()
        self._worker_errors: deque[Exception] = deque()
        self._stopping = threading.Event()
        self._closed = False
        self._connection = pool.create_unpooled_connection()
        self._worker: Optional[threading.Thread] = None
        if flush_interval is not None:
            self._worker = threading.Thread(
                target=self._drain_queue, name=f"querykit-runner-{pool.pool_id}", daemon=True
            )
            self._worker.start()

    @property
    def pool(self) -> "ConnectionPool":
        return self._pool

    @property
    def settings(self) -> "DialectSettings":
        return self._pool.settings

    @property
    def connection(self) -> "DBAPIConnectionProtocol":
        """The runner's dedicated connection."""
        return self._connection

    @property
    def statistics(self) -> "Optional[StatisticsCollector]":
        return self._statistics

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of enqueued statements not yet executed."""
        with self._queue_lock:
            return len(self._queue)

    def _check_open(self) -> None:
        if self._closed:
            msg = "Query runner is closed"
            raise PoolClosedError(msg)

    def prepare(self, sql: str, values: "Optional[Mapping[str, Any]]" = None) -> "tuple[str, dict[str, Any]]":
        """Bind ``values`` to ``sql`` and convert placeholders for the pool's driver.

        Raises:
            MissingParameterError: A placeholder in ``sql`` has no value.

        Returns:
            The statement to execute and its parameter mapping.
        """
        parameters = bind_values(sql, values, self.settings)
        return convert_placeholders(sql, self._pool.parameter_style), parameters

    @contextmanager
    def _target(self, conn: ConnectionTarget) -> "Generator[DBAPIConnectionProtocol, None, None]":
        self._check_open()
        if conn is None:
            with self._execute_lock:
                self._flush_locked()
                yield self._connection
            return
        with self._execute_lock:
            self._flush_locked()
        yield conn.connection if isinstance(conn, PooledConnection) else conn

    def _execute(
        self,
        connection: "DBAPIConnectionProtocol",
        sql: str,
        values: "Optional[Mapping[str, Any]]",
        *,
        deferred: bool = False,
    ) -> "CursorProtocol":
        statement, parameters = self.prepare(sql, values)
        return self._run(connection, sql, statement, parameters, deferred=deferred)

    def _run(
        self,
        connection: "DBAPIConnectionProtocol",
        sql: str,
        statement: str,
        parameters: "dict[str, Any]",
        *,
        deferred: bool = False,
    ) -> "CursorProtocol":
        operation = classify_statement(sql, self.settings.sqlglot_dialect).value
        cursor = connection.cursor()
        started_at = time.time()
        start = time.perf_counter()
        try:
            with wrap_exceptions(self._wrap_exceptions, sql):
                cursor.execute(statement, parameters)
            duration = time.perf_counter() - start
            rowcount = cursor.rowcount if cursor.rowcount is not None and cursor.rowcount >= 0 else None
            log_with_context(
                logger,
                logging.DEBUG,
                "runner.execute",
                adapter=self._pool.adapter_name,
                operation=operation,
                deferred=deferred,
                rows_affected=rowcount,
                duration_s=duration,
            )
            if self._statistics is not None:
                self._statistics.record(
                    create_event(
                        sql=sql,
                        operation=operation,
                        adapter=self._pool.adapter_name,
                        rows_affected=rowcount,
                        duration_s=duration,
                        deferred=deferred,
                        started_at=started_at,
                    )
                )
        except BaseException:
            cursor.close()
            raise
        return cursor

    @contextmanager
    def execute_reader(
        self, conn: ConnectionTarget, sql: str, values: "Optional[Mapping[str, Any]]" = None
    ) -> "Generator[RowReader, None, None]":
        """Execute a row-returning statement and yield a :class:`RowReader`.

        The reader is closed on every exit path, before control returns to the
        caller, so the connection can be freed straight after the ``with`` block.
        Passing ``None`` as ``conn`` reads through the runner connection, which
        stays locked until the reader is closed.
        """
        with self._target(conn) as connection:
            reader = RowReader(self._execute(connection, sql, values))
            try:
                yield reader
            finally:
                reader.close()

    def execute_non_query(self, conn: ConnectionTarget, sql: str, values: "Optional[Mapping[str, Any]]" = None) -> int:
        """Execute a statement and return the number of affected rows."""
        with self._target(conn) as connection:
            cursor = self._execute(connection, sql, values)
            try:
                return max(cursor.rowcount, 0)
            finally:
                cursor.close()

    def execute_insert(
        self, conn: ConnectionTarget, sql: str, values: "Optional[Mapping[str, Any]]" = None
    ) -> InsertResult:
        """Execute an insert and read back the generated auto-increment id."""
        with self._target(conn) as connection:
            cursor = self._execute(connection, sql, values)
            try:
                return InsertResult(
                    rows_affected=max(cursor.rowcount, 0), last_inserted_id=self._pool.get_last_inserted_id(cursor)
                )
            finally:
                cursor.close()

    def enqueue(self, sql: str, values: "Optional[Mapping[str, Any]]" = None) -> None:
        """Defer a non-row-returning statement to the runner connection.

        Values are bound immediately, so missing parameters fail here rather
        than at flush time.

        Raises:
            ArgumentError: ``sql`` returns rows; read it with :meth:`execute_reader`.
        """
        self._check_open()
        if returns_rows(sql, self.settings.sqlglot_dialect):
            msg = f"Row-returning statements cannot be deferred: {sql}"
            raise ArgumentError(msg)
        statement, parameters = self.prepare(sql, values)
        with self._queue_lock:
            self._queue.append(_QueuedStatement(sql=sql, statement=statement, parameters=parameters))

    def flush(self) -> int:
        """Execute every enqueued statement in order.

        Errors the background worker met since the last call are re-raised
        here, oldest first, after the queue has been drained.

        Raises:
            Exception: The first failing statement's error. It is dropped from
                the queue; the statements after it stay queued.

        Returns:
            The number of statements executed.
        """
        with self._execute_lock:
            executed = self._flush_locked()
        self._raise_worker_error()
        return executed

    def _raise_worker_error(self) -> None:
        with self._queue_lock:
            error = self._worker_errors.popleft() if self._worker_errors else None
        if error is not None:
            raise error

    def _drain_queue(self) -> None:
        interval = self._flush_interval
        while not self._stopping.wait(interval):
            if not self.pending:
                continue
            try:
                with self._execute_lock:
                    self._flush_locked()
            except Exception as e:
                # Logged by the flush; kept for the next flush() or close().
                with self._queue_lock:
                    self._worker_errors.append(e)

    def _flush_locked(self) -> int:
        with self._queue_lock:
            jobs = list(self._queue)
            self._queue.clear()
        for executed, job in enumerate(jobs):
            try:
                self._run(self._connection, job.sql, job.statement, job.parameters, deferred=True).close()
            except Exception as e:
                remaining = jobs[executed + 1 :]
                with self._queue_lock:
                    self._queue.extendleft(reversed(remaining))
                log_with_context(
                    logger,
                    logging.ERROR,
                    "runner.flush.error",
                    adapter=self._pool.adapter_name,
                    sql=job.sql,
                    error=str(e),
                    requeued=len(remaining),
                )
                raise
        return len(jobs)

    def close(self) -> None:
        """Stop the worker, flush pending statements and close the runner connection."""
        if self._closed:
            return
        self._stopping.set()
        if self._worker is not None and self._worker is not threading.current_thread():
            self._worker.join()
        try:
            self.flush()
        finally:
            self._closed = True
            self._connection.close()

    def __enter__(self) -> "Self":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()
