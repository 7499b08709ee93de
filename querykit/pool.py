"""Thread-safe pool of leased DB-API connections.

Slots ``[0, live_objects)`` of the pool's slot list hold leased connections and
the remaining slots hold free ones. Freeing swaps the connection with the last
leased slot, so acquiring and freeing never scan the list.
"""

import logging
import threading
import time
import uuid
import weakref
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from mypy_extensions import mypyc_attr

from querykit.exceptions import (
    ArgumentError,
    DatabaseConnectionError,
    ForeignPoolObjectError,
    PoolClosedError,
    PoolError,
    PoolExhaustedError,
    QueryKitError,
)
from querykit.parameters import Parameter, ParameterStyle, create_parameter
from querykit.utils.logging import POOL_LOGGER_NAME, get_logger, log_with_context

if TYPE_CHECKING:
    from types import TracebackType

    from typing_extensions import Self

    from querykit.dialects import DialectSettings
    from querykit.protocols import CursorProtocol, DBAPIConnectionProtocol

__all__ = ("ConnectionPool", "PooledConnection")

logger = get_logger(POOL_LOGGER_NAME)


class PooledConnection:
    """Wrapper for one physical connection leased from a :class:`ConnectionPool`.

    The wrapper keeps only a weak reference to its pool. Use it as a context
    manager to free it back to the pool on exit.
    """

    __slots__ = ("__weakref__", "_connection", "_leased", "_pool_index", "_pool_ref", "id", "idle_since")

    def __init__(self, pool: "ConnectionPool", pool_index: int) -> None:
        self.id = uuid.uuid4().hex
        self._pool_ref = weakref.ref(pool)
        self._pool_index: Optional[int] = pool_index
        self._connection: Optional[DBAPIConnectionProtocol] = None
        self._leased = False
        self.idle_since: Optional[float] = None

    @property
    def pool(self) -> "Optional[ConnectionPool]":
        """The owning pool, or ``None`` once it has been garbage collected."""
        return self._pool_ref()

    @property
    def pool_index(self) -> Optional[int]:
        """Slot index inside the pool; ``None`` once the pool dropped this connection."""
        return self._pool_index

    @property
    def is_leased(self) -> bool:
        return self._leased

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> "DBAPIConnectionProtocol":
        """The physical DB-API connection.

        Raises:
            PoolError: The connection is not leased or has no open physical connection.
        """
        if not self._leased or self._connection is None:
            msg = f"Pooled connection {self.id} is not leased"
            raise PoolError(msg)
        return self._connection

    def cursor(self) -> "CursorProtocol":
        return self.connection.cursor()  # type: ignore[no-any-return]

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()

    def free(self) -> None:
        """Return this connection to its pool. A no-op if it is already free."""
        pool = self.pool
        if pool is not None:
            pool.free(self)

    def _close_physical(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.close()
        except Exception as e:
            log_with_context(
                logger, logging.WARNING, "pool.connection.close.error", connection_id=self.id, error=str(e)
            )

    def _detach(self) -> None:
        self._close_physical()
        self._leased = False
        self._pool_index = None

    def __enter__(self) -> "Self":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.free()

    def __repr__(self) -> str:
        state = "leased" if self._leased else "free"
        return f"PooledConnection(id={self.id[:8]!r}, index={self._pool_index!r}, state={state!r})"


@mypyc_attr(allow_interpreted_subclasses=True)
class ConnectionPool(ABC):
    """Growable, thread-safe pool of :class:`PooledConnection` objects.

    Acquiring creates a new physical connection whenever no free one exists,
    so callers never wait unless ``max_size`` caps the pool. Every state
    transition (acquire, free, free-all, clear) runs under one lock per pool.

    Args:
        connection_parameters: Keyword arguments for the driver's ``connect``.
        keep_alive: Keep physical connections open while their slot is free.
        max_size: Optional upper bound on pooled connections; ``None`` grows without limit.
        acquire_timeout: Seconds to wait for a free slot of a capped pool; ``None`` waits forever.
        initial_size: Connections to open eagerly. Requires ``keep_alive``.
        on_connection_create: Called with every newly opened physical connection.
    """

    settings: "ClassVar[DialectSettings]"
    parameter_style: "ClassVar[ParameterStyle]" = ParameterStyle.NAMED_AT
    adapter_name: "ClassVar[str]" = "dbapi"
    test_query: "ClassVar[str]" = "SELECT 1"

    __slots__ = (
        "_acquire_timeout",
        "_closed",
        "_condition",
        "_connection_parameters",
        "_keep_alive",
        "_live_count",
        "_max_size",
        "_on_connection_create",
        "_pool_id",
        "_slots",
        "__weakref__",
    )

    def __init__(
        self,
        connection_parameters: "Optional[dict[str, Any]]" = None,
        *,
        keep_alive: bool = False,
        max_size: Optional[int] = None,
        acquire_timeout: Optional[float] = None,
        initial_size: int = 0,
        on_connection_create: "Optional[Callable[[Any], None]]" = None,
    ) -> None:
        if max_size is not None and max_size < 1:
            msg = f"max_size must be at least 1, got {max_size}"
            raise ArgumentError(msg)
        if initial_size > 0 and not keep_alive:
            # Free connections stay open only with keep_alive.
            msg = "initial_size requires keep_alive=True"
            raise ArgumentError(msg)
        self._connection_parameters = dict(connection_parameters or {})
        self._keep_alive = keep_alive
        self._max_size = max_size
        self._acquire_timeout = acquire_timeout
        self._on_connection_create = on_connection_create
        self._condition = threading.Condition(threading.RLock())
        self._slots: list[PooledConnection] = []
        self._live_count = 0
        self._closed = False
        self._pool_id = uuid.uuid4().hex[:8]

        if initial_size > 0:
            warm = [self.acquire() for _ in range(min(initial_size, max_size or initial_size))]
            for connection in warm:
                self.free(connection)

    @abstractmethod
    def _connect(self) -> "DBAPIConnectionProtocol":
        """Open a new physical connection with this pool's connection parameters."""

    @property
    def connection_parameters(self) -> "dict[str, Any]":
        return dict(self._connection_parameters)

    @property
    def database(self) -> str:
        """Name of the database the pool connects to, for messages and logs."""
        return str(self._connection_parameters.get("database", ""))

    @property
    def keep_alive(self) -> bool:
        return self._keep_alive

    @property
    def max_size(self) -> Optional[int]:
        return self._max_size

    @property
    def pool_id(self) -> str:
        return self._pool_id

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def live_objects(self) -> int:
        """Number of connections currently leased."""
        return self._live_count

    def size(self) -> int:
        """Total number of pooled connections, leased and free."""
        return len(self._slots)

    def _open(self, pooled: PooledConnection) -> None:
        pooled._connection = self._connect()
        if self._on_connection_create is not None:
            self._on_connection_create(pooled._connection)
        log_with_context(
            logger,
            logging.DEBUG,
            "pool.connection.open",
            adapter=self.adapter_name,
            pool_id=self._pool_id,
            connection_id=pooled.id,
            pool_index=pooled.pool_index,
        )

    def _reserve(self) -> PooledConnection:
        deadline = None if self._acquire_timeout is None else time.monotonic() + self._acquire_timeout
        with self._condition:
            while True:
                if self._closed:
                    msg = "Cannot acquire connection from closed pool"
                    raise PoolClosedError(msg)
                if self._live_count < len(self._slots):
                    pooled = self._slots[self._live_count]
                    break
                if self._max_size is None or len(self._slots) < self._max_size:
                    pooled = PooledConnection(self, len(self._slots))
                    self._slots.append(pooled)
                    log_with_context(
                        logger,
                        logging.DEBUG,
                        "pool.connection.create",
                        adapter=self.adapter_name,
                        pool_id=self._pool_id,
                        connection_id=pooled.id,
                        pool_size=len(self._slots),
                    )
                    break
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    log_with_context(
                        logger,
                        logging.WARNING,
                        "pool.exhausted",
                        adapter=self.adapter_name,
                        pool_id=self._pool_id,
                        max_size=self._max_size,
                        timeout_seconds=self._acquire_timeout,
                    )
                    msg = f"No free connection within {self._acquire_timeout}s (max_size={self._max_size})"
                    raise PoolExhaustedError(msg)
                self._condition.wait(remaining)
            self._live_count += 1
            pooled._leased = True
            pooled.idle_since = None
            return pooled

    def acquire(self) -> PooledConnection:
        """Lease a connection, opening its physical connection when needed.

        Raises:
            PoolClosedError: The pool was closed.
            PoolExhaustedError: ``max_size`` is reached and no connection was freed in time.

        Returns:
            A leased connection, usable as a context manager that frees it on exit.
        """
        pooled = self._reserve()
        if pooled.is_open:
            return pooled
        try:
            self._open(pooled)
        except BaseException:
            pooled._close_physical()
            self.free(pooled)
            raise
        with self._condition:
            if pooled.pool_index is None:
                pooled._close_physical()
                msg = "Pool was cleared while the connection was being opened"
                raise PoolError(msg)
        return pooled

    @contextmanager
    def provide_connection(self) -> "Generator[PooledConnection, None, None]":
        """Lease a connection for the duration of the ``with`` block."""
        pooled = self.acquire()
        try:
            yield pooled
        finally:
            self.free(pooled)

    def _release(self, pooled: PooledConnection) -> None:
        index = pooled._pool_index
        if index is None:
            return
        last = self._live_count - 1
        if index != last:
            other = self._slots[last]
            self._slots[index], self._slots[last] = other, pooled
            other._pool_index = index
            pooled._pool_index = last
        self._live_count = last
        pooled._leased = False
        pooled.idle_since = time.time()
        if not self._keep_alive:
            pooled._close_physical()

    def free(self, pooled: Optional[PooledConnection], throw_if_foreign: bool = False) -> None:
        """Return a leased connection to the pool.

        Args:
            pooled: The connection to free.
            throw_if_foreign: Raise when ``pooled`` belongs to another pool instead of ignoring it.

        Raises:
            ArgumentError: ``pooled`` is ``None``.
            ForeignPoolObjectError: ``pooled`` belongs to another pool and ``throw_if_foreign`` is set.
        """
        if pooled is None:
            msg = "Cannot free None into a connection pool"
            raise ArgumentError(msg)
        if pooled.pool is not self:
            if throw_if_foreign:
                msg = f"Connection {pooled.id} does not belong to pool {self._pool_id}"
                raise ForeignPoolObjectError(msg)
            return
        with self._condition:
            if not pooled.is_leased or pooled.pool_index is None:
                return
            self._release(pooled)
            self._condition.notify()
        log_with_context(
            logger,
            logging.DEBUG,
            "pool.connection.free",
            adapter=self.adapter_name,
            pool_id=self._pool_id,
            connection_id=pooled.id,
            live_objects=self._live_count,
        )

    def free_all(self, predicate: "Optional[Callable[[PooledConnection], bool]]" = None) -> int:
        """Free every leased connection matching ``predicate`` (all of them when ``None``).

        Returns:
            The number of connections freed.
        """
        freed = 0
        with self._condition:
            index = 0
            while index < self._live_count:
                pooled = self._slots[index]
                if predicate is None or predicate(pooled):
                    # The last leased connection moves into this slot; check it next.
                    self._release(pooled)
                    freed += 1
                else:
                    index += 1
            if freed:
                self._condition.notify_all()
        log_with_context(
            logger, logging.DEBUG, "pool.free_all", adapter=self.adapter_name, pool_id=self._pool_id, freed=freed
        )
        return freed

    def perform(self, action: "Callable[[PooledConnection], Any]") -> None:
        """Run ``action`` on every leased connection while holding the pool lock."""
        with self._condition:
            for pooled in self._slots[: self._live_count]:
                action(pooled)

    def clear(self) -> None:
        """Close and drop every connection, leased or free.

        Leased connections become detached: freeing them afterwards is a no-op.
        """
        with self._condition:
            slots, self._slots = self._slots, []
            self._live_count = 0
            for pooled in slots:
                pooled._detach()
            self._condition.notify_all()
        log_with_context(
            logger, logging.DEBUG, "pool.clear", adapter=self.adapter_name, pool_id=self._pool_id, dropped=len(slots)
        )

    def close(self) -> None:
        """Clear the pool and reject further acquisitions."""
        if self._closed:
            return
        with self._condition:
            self._closed = True
        self.clear()
        log_with_context(logger, logging.DEBUG, "pool.close", adapter=self.adapter_name, pool_id=self._pool_id)

    def create_unpooled_connection(self) -> "DBAPIConnectionProtocol":
        """Open a physical connection the pool does not track."""
        return self._connect()

    def test_connection(self) -> str:
        """Run :attr:`test_query` on a leased connection.

        Raises:
            DatabaseConnectionError: The driver failed to connect or to run the test query.

        Returns:
            The name of the database the pool connects to.
        """
        try:
            with self.provide_connection() as pooled:
                cursor = pooled.cursor()
                try:
                    cursor.execute(self.test_query)
                    cursor.fetchall()
                finally:
                    cursor.close()
        except QueryKitError:
            raise
        except Exception as e:
            log_with_context(
                logger,
                logging.ERROR,
                "pool.connection.test.error",
                adapter=self.adapter_name,
                pool_id=self._pool_id,
                database=self.database,
                error=str(e),
            )
            msg = f"Failed to connect to {self.adapter_name} database {self.database!r}: {e}"
            raise DatabaseConnectionError(msg) from e
        log_with_context(
            logger,
            logging.DEBUG,
            "pool.connection.test",
            adapter=self.adapter_name,
            pool_id=self._pool_id,
            database=self.database,
        )
        return self.database

    def create_parameter(self, name: str, db_type: Optional[str] = None, value: Any = None) -> Parameter:
        """Create a bound parameter named for this pool's dialect."""
        return create_parameter(self.settings, name, db_type, value)

    def get_last_inserted_id(self, cursor: "CursorProtocol") -> int:
        """Auto-increment id generated by the last insert executed on ``cursor``.

        Only meaningful directly after an insert into a table with an
        auto-increment column, on the same connection.
        """
        last_id = cursor.lastrowid
        if last_id is None:
            msg = "The last statement did not generate an auto-increment id"
            raise PoolError(msg)
        return int(last_id)

    @property
    def auto_increment_value(self) -> Any:
        """Value that makes the database generate the next auto-increment id on insert."""
        return None

    def __enter__(self) -> "Self":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(pool_id={self._pool_id!r}, size={len(self._slots)}, "
            f"live_objects={self._live_count})"
        )
