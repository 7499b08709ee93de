import threading
from abc import ABC
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, Optional, TypedDict, TypeVar

from typing_extensions import NotRequired

from querykit.builder import QueryBuilder
from querykit.exceptions import ArgumentError, ImproperConfigurationError
from querykit.query import is_registered_query
from querykit.runner import DEFAULT_FLUSH_INTERVAL, QueryRunner
from querykit.utils.logging import get_logger

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings
    from querykit.pool import ConnectionPool, PooledConnection
    from querykit.protocols import StatisticsCollector

__all__ = ("DatabaseConfig", "PoolConfig", "PoolT")

PoolT = TypeVar("PoolT", bound="ConnectionPool")
QueryT = TypeVar("QueryT")
RowT = TypeVar("RowT")

logger = get_logger("config")


class PoolConfig(TypedDict, total=False):
    """Pool options shared by every backend."""

    keep_alive: NotRequired[bool]
    max_size: "NotRequired[Optional[int]]"
    acquire_timeout: "NotRequired[Optional[float]]"
    initial_size: NotRequired[int]
    on_connection_create: "NotRequired[Optional[Callable[[Any], None]]]"


_POOL_CONFIG_KEYS = frozenset(PoolConfig.__annotations__)


class DatabaseConfig(ABC, Generic[PoolT]):
    """Connection parameters, pool options and lifecycle for one database.

    The pool and runner are created lazily and shared until :meth:`close_pool`.
    Subclasses bind a backend by setting ``pool_type``.
    """

    __slots__ = (
        "_lock",
        "_queries",
        "connection_parameters",
        "flush_interval",
        "pool_config",
        "pool_instance",
        "runner_instance",
        "statistics",
        "test_on_create",
        "wrap_exceptions",
    )

    pool_type: "ClassVar[type[ConnectionPool]]"

    def __init__(
        self,
        *,
        connection_parameters: "Optional[dict[str, Any]]" = None,
        pool_config: "Optional[PoolConfig]" = None,
        pool_instance: "Optional[PoolT]" = None,
        statistics: "Optional[StatisticsCollector]" = None,
        wrap_exceptions: bool = False,
        test_on_create: bool = True,
        flush_interval: Optional[float] = DEFAULT_FLUSH_INTERVAL,
    ) -> None:
        """Initialize the configuration.

        Args:
            connection_parameters: Keyword arguments for the driver's ``connect``.
            pool_config: Pool options, see :class:`PoolConfig`.
            pool_instance: Pre-created pool instance.
            statistics: Collector passed to the runner.
            wrap_exceptions: Wrap driver errors in ``QueryExecutionError``.
            test_on_create: Run the pool's test query when the pool is created.
            flush_interval: Passed to the runner; ``None`` disables its background worker.

        Raises:
            ImproperConfigurationError: ``pool_config`` holds an unknown option.
        """
        pool_config = pool_config or {}
        unknown = set(pool_config) - _POOL_CONFIG_KEYS
        if unknown:
            msg = f"Unknown pool option(s): {', '.join(sorted(unknown))}"
            raise ImproperConfigurationError(msg)
        self.connection_parameters: dict[str, Any] = dict(connection_parameters or {})
        self.pool_config: PoolConfig = pool_config
        self.pool_instance: Optional[PoolT] = pool_instance
        self.runner_instance: Optional[QueryRunner] = None
        self.statistics = statistics
        self.wrap_exceptions = wrap_exceptions
        self.test_on_create = test_on_create
        self.flush_interval = flush_interval
        self._queries: dict[type[Any], Any] = {}
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        parts = ", ".join(
            [
                f"pool_type={self.pool_type.__name__}",
                f"pool_config={self.pool_config!r}",
                f"pool_instance={self.pool_instance!r}",
            ]
        )
        return f"{type(self).__name__}({parts})"

    @property
    def dialect(self) -> "DialectSettings":
        return self.pool_type.settings

    @property
    def database(self) -> str:
        """Name of the target database, as reported by the pool."""
        return self.provide_pool().database

    def create_pool(self) -> PoolT:
        """Create the pool unless one already exists.

        With ``test_on_create`` the new pool runs its test query before it is
        handed out; a pool that fails the test is closed again.

        Raises:
            DatabaseConnectionError: The test query could not be run.

        Returns:
            The pool.
        """
        with self._lock:
            if self.pool_instance is not None:
                return self.pool_instance
            pool = self._create_pool()
            if self.test_on_create:
                try:
                    pool.test_connection()
                except BaseException:
                    pool.close()
                    raise
            self.pool_instance = pool
        logger.debug("Created %s for %s", type(pool).__name__, type(self).__name__)
        return pool

    def _create_pool(self) -> PoolT:
        return self.pool_type(self.connection_parameters, **self.pool_config)  # type: ignore[return-value]

    def provide_pool(self, *args: Any, **kwargs: Any) -> PoolT:
        """Provide pool instance."""
        if self.pool_instance is None:
            return self.create_pool()
        return self.pool_instance

    @contextmanager
    def provide_connection(self, *args: Any, **kwargs: Any) -> "Generator[PooledConnection, None, None]":
        """Lease a pooled connection for the duration of the ``with`` block."""
        with self.provide_pool().provide_connection() as connection:
            yield connection

    def create_runner(self) -> QueryRunner:
        """Create a new runner on this configuration's pool."""
        return QueryRunner(
            self.provide_pool(),
            statistics=self.statistics,
            wrap_exceptions=self.wrap_exceptions,
            flush_interval=self.flush_interval,
        )

    def provide_runner(self, *args: Any, **kwargs: Any) -> QueryRunner:
        """Provide the shared runner instance."""
        with self._lock:
            if self.runner_instance is None or self.runner_instance.is_closed:
                self.runner_instance = self.create_runner()
            return self.runner_instance

    def provide_query_builder(self) -> QueryBuilder:
        return QueryBuilder(self.dialect)

    def get_query(self, query_type: "type[QueryT]") -> QueryT:
        """Return the shared instance of a query set registered with :func:`~querykit.query.register_query`.

        Raises:
            ArgumentError: ``query_type`` was never registered.
        """
        if not is_registered_query(query_type):
            msg = f"{query_type.__name__} is not a registered query type"
            raise ArgumentError(msg)
        with self._lock:
            query = self._queries.get(query_type)
            if query is None:
                query = self._queries[query_type] = query_type(self)  # type: ignore[call-arg]
            return query  # type: ignore[no-any-return]

    def get_table_columns(self, table: str) -> "list[str]":
        """Return the column names of ``table`` in declaration order.

        Raises:
            InvalidIdentifierError: ``table`` is not a valid table name.
        """
        table = self.dialect.validate_table_name(table).unwrap()
        sql = f"SELECT * FROM {self.dialect.escape_table(table)} WHERE 0=1"
        with self.provide_connection() as conn, self.provide_runner().execute_reader(conn, sql) as reader:
            return list(reader.column_names)

    def execute_non_query(self, sql: str) -> int:
        """Run raw SQL on the runner connection and return the affected row count."""
        return self.provide_runner().execute_non_query(None, sql)

    def execute_non_queries(self, *sqls: str) -> int:
        """Run raw statements in one transaction on a pooled connection.

        The transaction is rolled back if any statement fails.

        Returns:
            The total number of affected rows.
        """
        if not sqls:
            return 0
        runner = self.provide_runner()
        with self.provide_connection() as conn:
            runner.execute_non_query(conn, "BEGIN")
            try:
                affected = sum(runner.execute_non_query(conn, sql) for sql in sqls)
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
        return affected

    def execute_query(self, sql: str, read_func: "Callable[[dict[str, Any]], RowT]") -> "list[RowT]":
        """Run a raw row-returning statement and map each row with ``read_func``."""
        with self.provide_runner().execute_reader(None, sql) as reader:
            return [read_func(row) for row in reader]

    def close_pool(self) -> None:
        """Close the shared runner, then the pool."""
        with self._lock:
            runner, self.runner_instance = self.runner_instance, None
            pool, self.pool_instance = self.pool_instance, None
            self._queries.clear()
        try:
            if runner is not None:
                runner.close()
        finally:
            if pool is not None:
                pool.close()
