from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Optional

__all__ = (
    "ArgumentError",
    "DatabaseConnectionError",
    "EmptyColumnListError",
    "ForeignPoolObjectError",
    "ImproperConfigurationError",
    "InvalidIdentifierError",
    "MissingDependencyError",
    "MissingParameterError",
    "ParameterError",
    "PoolClosedError",
    "PoolError",
    "PoolExhaustedError",
    "QueryBuilderError",
    "QueryExecutionError",
    "QueryKitError",
    "wrap_exceptions",
)


class QueryKitError(Exception):
    """Base exception class from which all querykit exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``QueryKitError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(QueryKitError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install querykit[{install_package or package}]' to install querykit with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(QueryKitError):
    """Improper Configuration error.

    Raised when a dialect or pool is configured with values it cannot use.
    """


# -- Query construction errors --
class QueryBuilderError(QueryKitError):
    """Issues building or rendering SQL statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues building SQL statement."
        super().__init__(message)


class EmptyColumnListError(QueryBuilderError):
    """A query was rendered with an explicit column list that holds no columns."""

    def __init__(self, query_kind: str, table: Optional[str] = None) -> None:
        message = f"Cannot render {query_kind} query with an empty column list"
        if table:
            message = f"{message} (table: {table})"
        super().__init__(message)
        self.query_kind = query_kind
        self.table = table


class InvalidIdentifierError(QueryBuilderError):
    """An identifier (table, column, alias or parameter name) is empty or malformed."""

    kind: str
    value: Optional[str]

    def __init__(self, kind: str, value: Optional[str], reason: str) -> None:
        super().__init__(f"Invalid {kind} {value!r}: {reason}")
        self.kind = kind
        self.value = value


# -- Argument errors --
class ArgumentError(QueryKitError, ValueError):
    """An invalid argument was passed to a builder or pool method."""


class ForeignPoolObjectError(ArgumentError):
    """A pooled connection was freed into a pool that does not own it."""


# -- Pool errors --
class PoolError(QueryKitError):
    """Base class for connection pool errors."""


class PoolClosedError(PoolError):
    """Pool has been closed and cannot accept new operations."""


class PoolExhaustedError(PoolError):
    """A capped pool had no free connection within the acquire timeout."""


class DatabaseConnectionError(PoolError):
    """The database could not be reached, or rejected the connection test query."""


# -- Parameter errors --
class ParameterError(QueryKitError):
    """Base class for parameter-related errors."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class MissingParameterError(ParameterError):
    """Raised when required parameters are missing."""


# -- Execution errors --
class QueryExecutionError(QueryKitError):
    """A database driver failed while executing a statement."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


@contextmanager
def wrap_exceptions(wrap_exceptions: bool = True, sql: Optional[str] = None) -> Generator[None, None, None]:
    try:
        yield

    except QueryKitError:
        raise
    except Exception as exc:
        if wrap_exceptions is False:
            raise
        msg = f"Error while executing database query: {exc}"
        raise QueryExecutionError(msg, sql=sql) from exc
