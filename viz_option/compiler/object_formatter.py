"""Render evaluated option objects back into editable script text."""
from __future__ import annotations

import math
import re
from typing import Any, List

from viz_option.config.compiler_config import FORMAT_INDENT, INLINE_ARRAY_MAX
from viz_option.sandbox.charting import HostFunction, HostObject
from viz_option.sandbox.interpreter import ScriptFunction

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
    "\0": "\\0",
}


def quote_string(value: str) -> str:
    """Single-quote a string, escaping backslashes, quotes and control chars."""
    chunks: List[str] = []
    for ch in value:
        escaped = _ESCAPES.get(ch)
        if escaped is not None:
            chunks.append(escaped)
        elif ord(ch) < 0x20 or ch in ("\u2028", "\u2029"):
            chunks.append(f"\\u{ord(ch):04x}")
        else:
            chunks.append(ch)
    return "'" + "".join(chunks) + "'"


def format_key(key: Any) -> str:
    text = str(key)
    return text if _IDENTIFIER_RE.match(text) else quote_string(text)


def format_number(value: int | float) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 2**53:
            return str(int(value))
        return repr(value)
    return str(value)


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def format_object(value: Any, indent: int = FORMAT_INDENT, depth: int = 0) -> str:
    """Format one value as script source at the given nesting depth."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, ScriptFunction):
        return value.source
    if isinstance(value, (HostFunction, HostObject)):
        return value.name

    current = " " * (depth * indent)
    nested = " " * ((depth + 1) * indent)

    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        if len(value) <= INLINE_ARRAY_MAX and all(_is_scalar(item) for item in value):
            return "[" + ", ".join(format_object(item, indent, depth + 1) for item in value) + "]"
        items = ",\n".join(nested + format_object(item, indent, depth + 1) for item in value)
        return f"[\n{items}\n{current}]"

    if isinstance(value, dict):
        if not value:
            return "{}"
        items = ",\n".join(
            f"{nested}{format_key(key)}: {format_object(item, indent, depth + 1)}"
            for key, item in value.items()
        )
        return f"{{\n{items}\n{current}}}"

    # numpy scalars, dates and the like arrive from DataFrame rows
    return quote_string(str(value))


def to_object_literal(obj: Any, indent: int = FORMAT_INDENT) -> str:
    """Render a bare object literal (no `option =` wrapper)."""
    return format_object(obj, indent, 0)


def stringify_chart_config(option: Any, indent: int = FORMAT_INDENT) -> str:
    """Render an option object as an `option = {...};` script."""
    return f"option = {to_object_literal(option, indent)};"
