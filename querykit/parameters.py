"""Bound parameters and ``@name`` placeholder handling.

Builders always render parameters with the dialect marker (``@name``). Drivers
differ in what they accept: :mod:`sqlite3` binds ``@name`` natively from a
mapping keyed by the bare name, while PyMySQL expects ``%(name)s`` and needs
literal ``%`` characters doubled. :func:`convert_placeholders` does that
rewrite while leaving string literals, quoted identifiers and comments alone.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Final, Optional

from querykit.exceptions import MissingParameterError

if TYPE_CHECKING:
    from querykit.dialects import DialectSettings

__all__ = (
    "Parameter",
    "ParameterInfo",
    "ParameterStyle",
    "bind_values",
    "convert_placeholders",
    "create_parameter",
    "extract_parameters",
)


class ParameterStyle(str, Enum):
    """Placeholder style a driver executes with."""

    NAMED_AT = "named_at"
    NAMED_PYFORMAT = "pyformat_named"

    def __str__(self) -> str:
        return self.value


_PARAMETER_REGEX: Final = re.compile(
    r"""
    (?P<dquote>"(?:[^"\\]|\\.)*") |
    (?P<squote>'(?:[^'\\]|\\.)*') |
    (?P<backtick>`[^`]*`) |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*(?:[^*]|\*(?!/))*\*/) |
    (?P<system_variable>@@[A-Za-z_][\w.]*) |
    (?P<named_at>@(?P<at_name>[A-Za-z_]\w*)) |
    (?P<percent>%)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class ParameterInfo:
    """One ``@name`` placeholder found in SQL text."""

    name: str
    position: int
    placeholder_text: str


@dataclass
class Parameter:
    """A value bound to one placeholder for a single execution.

    Attributes:
        name: The name without the parameter marker.
        parameter_name: The name as it appears in SQL, marker included.
        db_type: Optional backend type code, informational for drivers that infer types.
        value: The bound value.
    """

    name: str
    parameter_name: str
    db_type: Optional[str] = None
    value: Any = None


def create_parameter(
    settings: "DialectSettings", name: str, db_type: Optional[str] = None, value: Any = None
) -> Parameter:
    """Create a :class:`Parameter` for ``name``, with or without its marker.

    Raises:
        InvalidIdentifierError: The name is empty, contains a space or is only a marker.
    """
    settings.validate_parameter_name(name).unwrap()
    bare = settings.strip_parameter_marker(name)
    return Parameter(name=bare, parameter_name=settings.parameterize(bare), db_type=db_type, value=value)


@lru_cache(maxsize=512)
def _extract(sql: str) -> "tuple[ParameterInfo, ...]":
    return tuple(
        ParameterInfo(name=match.group("at_name"), position=match.start(), placeholder_text=match.group("named_at"))
        for match in _PARAMETER_REGEX.finditer(sql)
        if match.group("named_at")
    )


def extract_parameters(sql: str) -> "list[ParameterInfo]":
    """Return the ``@name`` placeholders of ``sql`` in order of appearance."""
    return list(_extract(sql))


@lru_cache(maxsize=512)
def convert_placeholders(sql: str, style: ParameterStyle) -> str:
    """Rewrite ``@name`` placeholders into ``style``.

    Args:
        sql: SQL text rendered with ``@name`` placeholders.
        style: Target placeholder style.

    Returns:
        The SQL text the driver should execute.
    """
    if style is ParameterStyle.NAMED_AT:
        return sql

    def _replace(match: "re.Match[str]") -> str:
        if match.group("named_at"):
            return f"%({match.group('at_name')})s"
        # The driver %-formats the whole statement, literals included.
        return match.group(0).replace("%", "%%")

    return _PARAMETER_REGEX.sub(_replace, sql)


def bind_values(
    sql: str, values: "Optional[Mapping[str, Any]]", settings: "DialectSettings"
) -> "dict[str, Any]":
    """Map ``values`` onto the placeholders used by ``sql``.

    Keys may be given with or without the parameter marker, or as
    :class:`Parameter` objects keyed by any name. Values whose name does not
    appear in the SQL are dropped.

    Raises:
        MissingParameterError: A placeholder has no value.

    Returns:
        A mapping keyed by bare parameter name.
    """
    normalized: dict[str, Any] = {}
    for key, value in (values or {}).items():
        if isinstance(value, Parameter):
            normalized[value.name] = value.value
        else:
            normalized[settings.strip_parameter_marker(key)] = value

    bound: dict[str, Any] = {}
    missing: list[str] = []
    for info in _extract(sql):
        if info.name in bound or info.placeholder_text in missing:
            continue
        if info.name not in normalized:
            missing.append(info.placeholder_text)
            continue
        bound[info.name] = normalized[info.name]
    if missing:
        msg = f"No value supplied for parameter(s): {', '.join(missing)}"
        raise MissingParameterError(msg, sql)
    return bound
