"""Statement classification helpers backed by the sqlglot tokenizer."""

from enum import Enum
from functools import lru_cache
from typing import Optional

import sqlglot
from sqlglot.errors import TokenError

from querykit.utils.logging import get_logger

__all__ = ("StatementKind", "classify_statement", "returns_rows")

logger = get_logger("utils.statements")


class StatementKind(str, Enum):
    """Coarse classification of a rendered SQL statement."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    REPLACE = "REPLACE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CALL = "CALL"
    OTHER = "OTHER"

    def __str__(self) -> str:
        return self.value


_ROW_KEYWORDS = frozenset({"SELECT", "WITH", "SHOW", "DESCRIBE", "DESC", "EXPLAIN", "PRAGMA", "VALUES"})
_KIND_BY_KEYWORD = {
    "INSERT": StatementKind.INSERT,
    "REPLACE": StatementKind.REPLACE,
    "UPDATE": StatementKind.UPDATE,
    "DELETE": StatementKind.DELETE,
    "CALL": StatementKind.CALL,
}


@lru_cache(maxsize=1024)
def _leading_keyword(sql: str, dialect: Optional[str]) -> str:
    try:
        tokens = sqlglot.tokenize(sql, read=dialect)
    except TokenError as e:
        # Labels only; text the tokenizer rejects still runs and classifies as OTHER.
        logger.debug("Unable to tokenize SQL statement for classification: %s", e)
        return ""
    for token in tokens:
        if token.text == "(":
            continue
        return token.text.upper()
    return ""


def classify_statement(sql: str, dialect: Optional[str] = None) -> StatementKind:
    """Classify a statement by its leading keyword.

    Classification never fails: text the tokenizer rejects is ``OTHER``.

    Args:
        sql: Rendered SQL text.
        dialect: sqlglot dialect name used for tokenizing.

    Returns:
        The statement kind; row-returning statements classify as ``SELECT``.
    """
    keyword = _leading_keyword(sql, dialect)
    if keyword in _ROW_KEYWORDS:
        return StatementKind.SELECT
    return _KIND_BY_KEYWORD.get(keyword, StatementKind.OTHER)


def returns_rows(sql: str, dialect: Optional[str] = None) -> bool:
    return classify_statement(sql, dialect) is StatementKind.SELECT
