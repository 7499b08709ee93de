"""Per-backend identifier escaping, validation and parameter marker rules."""

from dataclasses import dataclass
from typing import Optional

from querykit.exceptions import InvalidIdentifierError
from querykit.result import Err, Ok, Result

__all__ = ("COMPOSITE_IDENTIFIER_CHARS", "DialectSettings", "IdentifierKind")

COMPOSITE_IDENTIFIER_CHARS = frozenset(".() ")


class IdentifierKind:
    """Names used in validation errors."""

    COLUMN = "column name"
    TABLE = "table name"
    COLUMN_ALIAS = "column alias"
    TABLE_ALIAS = "table alias"
    PARAMETER = "parameter name"


@dataclass(frozen=True)
class DialectSettings:
    """Immutable SQL syntax rules for one database backend.

    One instance exists per backend and is shared by every builder rendering
    for that backend.
    """

    name: str
    sqlglot_dialect: str
    identifier_quote: str = "`"
    parameter_marker: str = "@"
    alias_keyword: str = "AS"
    case_insensitive_columns: bool = True
    insert_ignore_keyword: str = "INSERT IGNORE"
    upsert_clause: str = "ON DUPLICATE KEY UPDATE"

    def is_composite(self, identifier: str) -> bool:
        """Whether ``identifier`` is a pre-composed expression that must not be quoted."""
        return any(char in COMPOSITE_IDENTIFIER_CHARS for char in identifier)

    def is_quoted(self, identifier: str) -> bool:
        quote = self.identifier_quote
        return len(identifier) >= 2 and identifier[0] == quote and identifier[-1] == quote  # noqa: PLR2004

    def _escape(self, identifier: str) -> str:
        if self.is_composite(identifier) or self.is_quoted(identifier):
            return identifier
        quote = self.identifier_quote
        return f"{quote}{identifier.replace(quote, quote * 2)}{quote}"

    def escape_column(self, name: str) -> str:
        """Quote a column name.

        Names containing ``.``, ``(``, ``)`` or a space pass through untouched, as
        do names that are already quoted.

        Args:
            name: The column name or expression.

        Returns:
            The escaped column name.
        """
        return self._escape(name)

    def escape_table(self, name: str) -> str:
        """Quote a table name, with the same passthrough rules as :meth:`escape_column`."""
        return self._escape(name)

    def parameterize(self, name: str) -> str:
        """Prefix the parameter marker unless ``name`` already carries it."""
        if name.startswith(self.parameter_marker):
            return name
        return f"{self.parameter_marker}{name}"

    def strip_parameter_marker(self, name: str) -> str:
        if name.startswith(self.parameter_marker):
            return name[len(self.parameter_marker) :]
        return name

    def apply_column_alias(self, sql: str, alias: Optional[str]) -> str:
        if alias is None:
            return sql
        self.validate_column_alias(alias).unwrap()
        return f"{sql} {self.alias_keyword} {alias}"

    def apply_table_alias(self, sql: str, alias: Optional[str]) -> str:
        if alias is None:
            return sql
        self.validate_table_alias(alias).unwrap()
        return f"{sql} {self.alias_keyword} {alias}"

    @staticmethod
    def _validate(kind: str, value: Optional[str]) -> "Result[str, InvalidIdentifierError]":
        if not value:
            return Err(InvalidIdentifierError(kind, value, "value is empty"))
        if " " in value:
            return Err(InvalidIdentifierError(kind, value, "value contains a space"))
        return Ok(value)

    def validate_column_name(self, value: Optional[str]) -> "Result[str, InvalidIdentifierError]":
        return self._validate(IdentifierKind.COLUMN, value)

    def validate_table_name(self, value: Optional[str]) -> "Result[str, InvalidIdentifierError]":
        return self._validate(IdentifierKind.TABLE, value)

    def validate_column_alias(self, value: Optional[str]) -> "Result[str, InvalidIdentifierError]":
        return self._validate(IdentifierKind.COLUMN_ALIAS, value)

    def validate_table_alias(self, value: Optional[str]) -> "Result[str, InvalidIdentifierError]":
        return self._validate(IdentifierKind.TABLE_ALIAS, value)

    def validate_parameter_name(self, value: Optional[str]) -> "Result[str, InvalidIdentifierError]":
        result = self._validate(IdentifierKind.PARAMETER, value)
        if isinstance(result, Err):
            return result
        if not self.strip_parameter_marker(result.value):
            return Err(InvalidIdentifierError(IdentifierKind.PARAMETER, value, "value is only a parameter marker"))
        return result

    def is_valid_column_name(self, value: Optional[str]) -> bool:
        return self.validate_column_name(value).is_ok()

    def is_valid_table_name(self, value: Optional[str]) -> bool:
        return self.validate_table_name(value).is_ok()

    def is_valid_column_alias(self, value: Optional[str]) -> bool:
        return self.validate_column_alias(value).is_ok()

    def is_valid_table_alias(self, value: Optional[str]) -> bool:
        return self.validate_table_alias(value).is_ok()

    def is_valid_parameter_name(self, value: Optional[str]) -> bool:
        return self.validate_parameter_name(value).is_ok()

    def column_key(self, name: str) -> str:
        """Comparison key for column names under this dialect's comparer."""
        key = name[1:-1] if self.is_quoted(name) else name
        return key.casefold() if self.case_insensitive_columns else key

    def columns_equal(self, left: str, right: str) -> bool:
        return self.column_key(left) == self.column_key(right)
