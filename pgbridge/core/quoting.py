"""
Value and identifier quoting for dynamically built SQL.

Every table name, column name and value that ends up inside synthesized
statement text goes through one of these functions.

Examples:
    >>> quote_literal(None)
    'NULL'
    >>> quote_literal("a'b")
    "'a''b'"
    >>> quote_literal([1, 2, 3])
    "'{1,2,3}'"
    >>> quote_identifier('user"name')
    '"user""name"'
"""

from datetime import date, datetime, time
from typing import Any

NULL = "NULL"


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


# Characters that make an array element need double quotes inside {...}
_ARRAY_SPECIAL = set(',{}"\\')


def _array_element(item: Any) -> str:
    if item is None:
        return NULL
    text = _as_text(item)
    if (
        not text
        or text.upper() == NULL
        or any(ch in _ARRAY_SPECIAL or ch.isspace() for ch in text)
    ):
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return text


def _quote_string(text: str) -> str:
    escaped = text.replace("'", "''")
    if "\\" in text:
        # E'' literals treat backslash as escape regardless of standard_conforming_strings
        return "E'" + escaped.replace("\\", "\\\\") + "'"
    return "'" + escaped + "'"


def quote_literal(value: Any) -> str:
    """
    Render a Python value as an SQL literal.

    None becomes the bare NULL keyword, lists and tuples become a quoted
    array literal ('{a,b}'), everything else a quoted string literal.
    """
    if value is None:
        return NULL
    if isinstance(value, (list, tuple)):
        items = ",".join(_array_element(item) for item in value)
        return _quote_string("{" + items + "}")
    return _quote_string(_as_text(value))


def quote_identifier(name: str) -> str:
    """Quote a table or column name, doubling embedded double quotes."""
    escaped = str(name).replace('"', '""')
    return f'"{escaped}"'


def quote_table(name: str) -> str:
    """
    Quote a possibly schema-qualified table name.

    >>> quote_table("public.users")
    '"public"."users"'
    """
    return ".".join(quote_identifier(part) for part in str(name).split("."))
