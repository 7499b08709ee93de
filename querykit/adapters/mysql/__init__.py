"""MySQL adapter for querykit, backed by PyMySQL."""

from querykit.adapters.mysql.config import MySQLConfig
from querykit.adapters.mysql.pool import MySQLConnectionParams, MySQLConnectionPool

__all__ = ("MySQLConfig", "MySQLConnectionParams", "MySQLConnectionPool")
