"""Dialect settings and expression helpers for the supported backends."""

from typing import Union

from querykit.dialects._functions import Functions, QueryIntervalType, SqliteFunctions
from querykit.dialects._settings import DialectSettings, IdentifierKind
from querykit.dialects.mysql import MYSQL, MySQLFunctions
from querykit.dialects.sqlite import SQLITE
from querykit.exceptions import ImproperConfigurationError

__all__ = (
    "MYSQL",
    "SQLITE",
    "DialectSettings",
    "Functions",
    "IdentifierKind",
    "MySQLFunctions",
    "QueryIntervalType",
    "SqliteFunctions",
    "get_dialect",
    "get_functions",
)

_DIALECTS: "dict[str, tuple[DialectSettings, Functions]]" = {
    MYSQL.name: (MYSQL, MySQLFunctions()),
    SQLITE.name: (SQLITE, SqliteFunctions()),
}


def get_dialect(name: "Union[str, DialectSettings]") -> DialectSettings:
    """Look up a built-in dialect by name.

    Raises:
        ImproperConfigurationError: The name is not a known dialect.
    """
    if isinstance(name, DialectSettings):
        return name
    try:
        return _DIALECTS[name.lower()][0]
    except KeyError:
        msg = f"Unknown dialect {name!r}. Expected one of: {', '.join(sorted(_DIALECTS))}"
        raise ImproperConfigurationError(msg) from None


def get_functions(dialect: "Union[str, DialectSettings]") -> Functions:
    """Return the expression helpers matching a dialect (base spelling for unknown custom settings)."""
    settings = dialect if isinstance(dialect, DialectSettings) else get_dialect(dialect)
    entry = _DIALECTS.get(settings.name)
    return entry[1] if entry is not None else Functions()
