"""querykit: dialect-aware SQL builders, connection pooling and query execution."""

from querykit import adapters, builder, dialects, exceptions, observability, utils
from querykit.__metadata__ import __version__
from querykit.builder import (
    CallProcedureQuery,
    DeleteQuery,
    InsertQuery,
    OnDuplicateKeyUpdateQuery,
    OrderBy,
    QueryBuilder,
    ReplaceQuery,
    ResultFilter,
    SelectFunctionQuery,
    SelectQuery,
    UpdateQuery,
)
from querykit.config import DatabaseConfig, PoolConfig
from querykit.dialects import MYSQL, SQLITE, DialectSettings, Functions, QueryIntervalType, get_dialect
from querykit.exceptions import (
    ArgumentError,
    DatabaseConnectionError,
    EmptyColumnListError,
    ForeignPoolObjectError,
    InvalidIdentifierError,
    MissingParameterError,
    ParameterError,
    PoolClosedError,
    PoolError,
    PoolExhaustedError,
    QueryBuilderError,
    QueryExecutionError,
    QueryKitError,
)
from querykit.observability import QueryEvent, QueryStatsCollector
from querykit.parameters import Parameter, ParameterStyle
from querykit.pool import ConnectionPool, PooledConnection
from querykit.query import DbQuery, register_query
from querykit.result import Err, Ok, Result
from querykit.runner import InsertResult, QueryRunner, RowReader

__all__ = (
    "MYSQL",
    "SQLITE",
    "ArgumentError",
    "CallProcedureQuery",
    "ConnectionPool",
    "DatabaseConfig",
    "DatabaseConnectionError",
    "DbQuery",
    "DeleteQuery",
    "DialectSettings",
    "EmptyColumnListError",
    "Err",
    "ForeignPoolObjectError",
    "Functions",
    "InsertQuery",
    "InsertResult",
    "InvalidIdentifierError",
    "MissingParameterError",
    "Ok",
    "OnDuplicateKeyUpdateQuery",
    "OrderBy",
    "Parameter",
    "ParameterError",
    "ParameterStyle",
    "PoolClosedError",
    "PoolConfig",
    "PoolError",
    "PoolExhaustedError",
    "PooledConnection",
    "QueryBuilder",
    "QueryBuilderError",
    "QueryEvent",
    "QueryExecutionError",
    "QueryIntervalType",
    "QueryKitError",
    "QueryRunner",
    "QueryStatsCollector",
    "ReplaceQuery",
    "Result",
    "ResultFilter",
    "RowReader",
    "SelectFunctionQuery",
    "SelectQuery",
    "UpdateQuery",
    "__version__",
    "adapters",
    "builder",
    "dialects",
    "exceptions",
    "get_dialect",
    "register_query",
    "observability",
    "utils",
)
