"""MySQL dialect: backtick identifiers, ``@`` parameters, ``ON DUPLICATE KEY UPDATE``."""

from querykit.dialects._functions import Functions
from querykit.dialects._settings import DialectSettings

__all__ = ("MYSQL", "MySQLFunctions")

MYSQL = DialectSettings(
    name="mysql",
    sqlglot_dialect="mysql",
    identifier_quote="`",
    parameter_marker="@",
    alias_keyword="AS",
    case_insensitive_columns=True,
    insert_ignore_keyword="INSERT IGNORE",
    upsert_clause="ON DUPLICATE KEY UPDATE",
)


class MySQLFunctions(Functions):
    """MySQL spelling of the expression helpers (the base spelling)."""

    __slots__ = ()
