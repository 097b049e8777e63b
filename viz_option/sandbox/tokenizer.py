"""Tokenizer for the option script language.

The language is the small JavaScript-like subset people paste into the advanced
chart editor: object/array literals, arrow functions, simple statements. Regex
literals are not supported; `/` is always division.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Tuple

from viz_option.config.compiler_config import SANDBOX_MAX_SOURCE_CHARS


class ScriptError(ValueError):
    """Raised for any tokenize, parse or runtime failure inside the sandbox."""


@dataclass(frozen=True)
class Token:
    kind: str  # num | str | template | name | punct | eof
    value: Any
    start: int
    end: int


_PUNCTUATORS = (
    "...", "===", "!==", "**=",
    "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "**",
    "{", "}", "(", ")", "[", "]", ";", ",", ":", ".", "?",
    "+", "-", "*", "/", "%", "<", ">", "=", "!",
)
_NAME_RE = re.compile(r"(?:[^\W\d]|\$)(?:\w|\$)*")
_NUMBER_RE = re.compile(r"0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def tokenize(source: str) -> List[Token]:
    """Split script source into tokens, skipping whitespace and comments."""
    if len(source) > SANDBOX_MAX_SOURCE_CHARS:
        raise ScriptError(f"script exceeds {SANDBOX_MAX_SOURCE_CHARS} characters")

    tokens: List[Token] = []
    pos = 0
    length = len(source)
    while pos < length:
        ch = source[pos]
        if ch.isspace():
            pos += 1
            continue
        if source.startswith("//", pos):
            newline = source.find("\n", pos)
            pos = length if newline < 0 else newline + 1
            continue
        if source.startswith("/*", pos):
            close = source.find("*/", pos + 2)
            if close < 0:
                raise ScriptError("unterminated block comment")
            pos = close + 2
            continue
        if ch in ("'", '"'):
            value, end = _read_string(source, pos)
            tokens.append(Token("str", value, pos, end))
            pos = end
            continue
        if ch == "`":
            parts, end = _read_template(source, pos)
            tokens.append(Token("template", parts, pos, end))
            pos = end
            continue
        if ch.isdigit() or (ch == "." and pos + 1 < length and source[pos + 1].isdigit()):
            match = _NUMBER_RE.match(source, pos)
            if match is None:  # pragma: no cover - guarded by the branch condition
                raise ScriptError(f"invalid number at {pos}")
            tokens.append(Token("num", _number_value(match.group(0)), pos, match.end()))
            pos = match.end()
            continue
        match = _NAME_RE.match(source, pos)
        if match:
            tokens.append(Token("name", match.group(0), pos, match.end()))
            pos = match.end()
            continue
        punct = _match_punctuator(source, pos)
        if punct is None:
            raise ScriptError(f"unexpected character {ch!r} at {pos}")
        tokens.append(Token("punct", punct, pos, pos + len(punct)))
        pos += len(punct)

    tokens.append(Token("eof", None, length, length))
    return tokens


def _match_punctuator(source: str, pos: int) -> str | None:
    for punct in _PUNCTUATORS:
        if source.startswith(punct, pos):
            # `a?.5:1` is a conditional, not optional chaining
            if punct == "?." and pos + 2 < len(source) and source[pos + 2].isdigit():
                return "?"
            return punct
    return None


def _number_value(text: str) -> int | float:
    if text[:2] in ("0x", "0X"):
        value = int(text, 16)
        if value < 2**53:
            return value
        try:
            return float(value)
        except OverflowError:
            return float("inf")
    if any(marker in text for marker in (".", "e", "E")):
        value = float(text)
        if value.is_integer() and abs(value) < 2**53:
            return int(value)
        return value
    value = int(text)
    # past 2**53 literals are doubles, as in JavaScript
    return value if abs(value) < 2**53 else float(text)


def _read_escape(source: str, pos: int) -> Tuple[str, int]:
    """Decode the escape sequence whose backslash sits at `pos`."""
    if pos + 1 >= len(source):
        raise ScriptError("unterminated escape sequence")
    marker = source[pos + 1]
    if marker in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[marker], pos + 2
    if marker == "x":
        digits = source[pos + 2 : pos + 4]
        try:
            return chr(int(digits, 16)), pos + 4
        except ValueError as exc:
            raise ScriptError(f"invalid \\x escape at {pos}") from exc
    if marker == "u":
        if source.startswith("{", pos + 2):
            close = source.find("}", pos + 3)
            digits = source[pos + 3 : close] if close > 0 else ""
            end = close + 1
        else:
            digits = source[pos + 2 : pos + 6]
            end = pos + 6
        try:
            return chr(int(digits, 16)), end
        except ValueError as exc:
            raise ScriptError(f"invalid \\u escape at {pos}") from exc
    if marker == "\r" and source.startswith("\n", pos + 2):
        return "", pos + 3
    if marker in ("\n", "\r"):
        return "", pos + 2
    return marker, pos + 2


def _read_string(source: str, start: int) -> Tuple[str, int]:
    quote = source[start]
    chunks: List[str] = []
    pos = start + 1
    while pos < len(source):
        ch = source[pos]
        if ch == quote:
            return "".join(chunks), pos + 1
        if ch == "\\":
            decoded, pos = _read_escape(source, pos)
            chunks.append(decoded)
            continue
        if ch == "\n":
            break
        chunks.append(ch)
        pos += 1
    raise ScriptError(f"unterminated string starting at {start}")


def _read_template(source: str, start: int) -> Tuple[List[Tuple[str, str]], int]:
    """Read a template literal into ("text", str) and ("expr", source) parts."""
    parts: List[Tuple[str, str]] = []
    chunks: List[str] = []
    pos = start + 1
    while pos < len(source):
        ch = source[pos]
        if ch == "`":
            if chunks:
                parts.append(("text", "".join(chunks)))
            return parts, pos + 1
        if ch == "\\":
            decoded, pos = _read_escape(source, pos)
            chunks.append(decoded)
            continue
        if source.startswith("${", pos):
            if chunks:
                parts.append(("text", "".join(chunks)))
                chunks = []
            expr_end = _find_placeholder_end(source, pos + 2)
            parts.append(("expr", source[pos + 2 : expr_end]))
            pos = expr_end + 1
            continue
        chunks.append(ch)
        pos += 1
    raise ScriptError(f"unterminated template literal starting at {start}")


def _find_placeholder_end(source: str, pos: int) -> int:
    depth = 0
    while pos < len(source):
        ch = source[pos]
        if ch in ("'", '"'):
            _, pos = _read_string(source, pos)
            continue
        if ch == "`":
            _, pos = _read_template(source, pos)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            if depth == 0:
                return pos
            depth -= 1
        pos += 1
    raise ScriptError("unterminated template placeholder")
