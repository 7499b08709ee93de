"""SQLite dialect: double-quoted identifiers and ``ON CONFLICT DO UPDATE SET`` upserts."""

from querykit.dialects._functions import SqliteFunctions
from querykit.dialects._settings import DialectSettings

__all__ = ("SQLITE", "SqliteFunctions")

SQLITE = DialectSettings(
    name="sqlite",
    sqlglot_dialect="sqlite",
    identifier_quote='"',
    parameter_marker="@",
    alias_keyword="AS",
    case_insensitive_columns=True,
    insert_ignore_keyword="INSERT OR IGNORE",
    upsert_clause="ON CONFLICT DO UPDATE SET",
)
