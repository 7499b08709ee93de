"""SQLite adapter for querykit."""

from querykit.adapters.sqlite.config import SqliteConfig
from querykit.adapters.sqlite.pool import SqliteConnectionParams, SqliteConnectionPool

__all__ = ("SqliteConfig", "SqliteConnectionParams", "SqliteConnectionPool")
