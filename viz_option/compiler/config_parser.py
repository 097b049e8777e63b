"""고급 차트 설정 텍스트 파서.

- 사용자가 붙여넣은 스크립트(할당문, 변수 선언, TS 타입 표기 포함)를 옵션 객체로 바꾼다.
- 실행은 항상 샌드박스에서만 한다. 바인딩은 `echarts`와 `$DATA` 두 개뿐이다.
- 전략 순서: 전체 실행 → 할당문 추출 → 중괄호 스캔.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from viz_option.config.compiler_config import PARSE_DEBUG_EVENTS
from viz_option.sandbox.charting import sandbox_bindings
from viz_option.sandbox.runtime import evaluate_expression, run_function_body
from viz_option.sandbox.tokenizer import ScriptError
from viz_option.utils.logging import log_event


class ConfigParseError(ValueError):
    """Raised when no parsing strategy yields a configuration object."""


_IDENT = r"[a-zA-Z_$][a-zA-Z0-9_$]*"
_FUNCTION_PARAM_TYPE_RE = re.compile(r"function\s*\(\s*(" + _IDENT + r")\s*:\s*[^)]+\)")
_AS_ASSERTION_RE = re.compile(r"\s+as\s+[a-zA-Z_$][a-zA-Z0-9_$<>\[\]|&,\s]*")
_ARROW_PARAM_TYPE_RE = re.compile(r"\((" + _IDENT + r")\s*:\s*[^)]+\)")
_TYPE_DECLARATION_RE = re.compile(r"^(?:interface|type)\s+[^{]+\{[^}]*\}\s*;?\s*", re.MULTILINE)
_MASK_RE = re.compile(r"\x00(\d+)\x00")

_ASSIGNMENT_PATTERNS = (
    re.compile(r"(?:var|let|const)\s+option\s*=\s*(\{[\s\S]*\})\s*;?\s*$"),
    re.compile(r"option\s*=\s*(\{[\s\S]*\})\s*;?\s*$"),
    re.compile(r"(?:var|let|const)\s+config\s*=\s*(\{[\s\S]*\})\s*;?\s*$"),
    re.compile(r"config\s*=\s*(\{[\s\S]*\})\s*;?\s*$"),
)


# ---------------------------------------------------------------------------
# Annotation stripping
# ---------------------------------------------------------------------------


def _mask_strings(text: str) -> Tuple[str, List[str]]:
    """Swap string literals for `\\x00<n>\\x00` markers so regexes cannot touch them."""
    literals: List[str] = []
    out: List[str] = []
    pos = 0
    length = len(text)
    while pos < length:
        ch = text[pos]
        if text.startswith("//", pos):
            end = text.find("\n", pos)
            end = length if end < 0 else end
            out.append(text[pos:end])
            pos = end
            continue
        if text.startswith("/*", pos):
            end = text.find("*/", pos + 2)
            end = length if end < 0 else end + 2
            out.append(text[pos:end])
            pos = end
            continue
        if ch in ("'", '"', "`"):
            end = _string_end(text, pos)
            if end < 0:
                out.append(ch)
                pos += 1
                continue
            out.append(f"\x00{len(literals)}\x00")
            literals.append(text[pos:end])
            pos = end
            continue
        out.append(ch)
        pos += 1
    return "".join(out), literals


def _string_end(text: str, start: int) -> int:
    quote = text[start]
    pos = start + 1
    while pos < len(text):
        ch = text[pos]
        if ch == "\\":
            pos += 2
            continue
        if ch == quote:
            return pos + 1
        if ch == "\n" and quote != "`":
            return -1
        pos += 1
    return -1


def _unmask_strings(text: str, literals: List[str]) -> str:
    return _MASK_RE.sub(lambda m: literals[int(m.group(1))], text)


def strip_type_annotations(text: str) -> str:
    """Remove TypeScript-style annotations that the sandbox grammar does not accept.

    Handles `function (x: T)`, `(x: T) =>`, `expr as T` and top-level
    `interface`/`type` declarations. Quoted text is left untouched.
    """
    masked, literals = _mask_strings(text)
    masked = _FUNCTION_PARAM_TYPE_RE.sub(r"function (\1)", masked)
    masked = _AS_ASSERTION_RE.sub("", masked)
    masked = _ARROW_PARAM_TYPE_RE.sub(r"(\1)", masked)
    masked = _TYPE_DECLARATION_RE.sub("", masked)
    return _unmask_strings(masked, literals)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _log_strategy(strategy: str, ok: bool, error: str | None = None) -> None:
    if not PARSE_DEBUG_EVENTS:
        return
    payload: Dict[str, Any] = {"strategy": strategy, "ok": ok}
    if error:
        payload["error"] = error
    log_event("config.parse.strategy", payload, level="debug")


def _try_full_execution(code: str) -> Optional[Dict[str, Any]]:
    if "option" not in code:
        return None
    try:
        result = run_function_body(code, sandbox_bindings(), declare=("option",), result_name="option")
    except ScriptError as exc:
        _log_strategy("full_execution", False, str(exc))
        return None
    if isinstance(result, dict):
        return result
    _log_strategy("full_execution", False, "option is not an object")
    return None


def _try_assignment_extraction(code: str) -> Optional[Dict[str, Any]]:
    for pattern in _ASSIGNMENT_PATTERNS:
        match = pattern.search(code)
        if not match:
            continue
        try:
            result = evaluate_expression(match.group(1).strip(), sandbox_bindings())
        except ScriptError as exc:
            _log_strategy("assignment_extraction", False, str(exc))
            continue
        if isinstance(result, dict):
            return result
    return None


def _evaluate_object(candidate: str, strategy: str) -> Optional[Dict[str, Any]]:
    try:
        result = evaluate_expression(candidate, sandbox_bindings())
    except ScriptError as exc:
        _log_strategy(strategy, False, str(exc))
        return None
    return result if isinstance(result, dict) else None


def _try_brace_scan(code: str) -> Optional[Dict[str, Any]]:
    candidate = code
    if candidate.startswith("{"):
        if candidate.endswith("};"):
            candidate = candidate[:-1]
        if candidate.endswith("}"):
            return _evaluate_object(candidate, "brace_scan")

    first = code.find("{")
    last = code.rfind("}")
    if first != -1 and last > first:
        return _evaluate_object(code[first : last + 1], "brace_scan")
    return None


_STRATEGIES: Tuple[Tuple[str, Callable[[str], Optional[Dict[str, Any]]]], ...] = (
    ("full_execution", _try_full_execution),
    ("assignment_extraction", _try_assignment_extraction),
    ("brace_scan", _try_brace_scan),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_chart_config_verbose(text: Any) -> Tuple[Dict[str, Any], str]:
    """Parse config text and report which strategy produced the object."""
    if not isinstance(text, str):
        raise ConfigParseError("Invalid configuration: expected a string")
    trimmed = text.strip()
    if not trimmed:
        raise ConfigParseError("Invalid configuration: empty string")

    cleaned = strip_type_annotations(trimmed).strip()
    for name, strategy in _STRATEGIES:
        result = strategy(cleaned)
        if result is not None:
            _log_strategy(name, True)
            return result, name

    log_event("config.parse.failed", {"chars": len(trimmed)}, level="warning")
    raise ConfigParseError(
        "Failed to parse chart configuration: could not find a valid chart configuration object"
    )


def parse_chart_config(text: Any) -> Dict[str, Any]:
    """Parse free-form config text into a plain option/config object.

    Raises:
        ConfigParseError: when the input is empty or every strategy fails.
    """
    config, _ = parse_chart_config_verbose(text)
    return config


def is_valid_chart_config(text: Any) -> bool:
    try:
        parse_chart_config(text)
    except ConfigParseError:
        return False
    return True
