"""`$DATA` placeholder handling for advanced configs.

- Stored configs keep `$DATA` instead of the row payload.
- On preview the placeholder is resolved against freshly fetched rows.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from viz_option.config.compiler_config import DATA_PLACEHOLDER
from viz_option.sandbox.charting import sandbox_bindings
from viz_option.sandbox.runtime import evaluate_expression, run_function_body
from viz_option.sandbox.tokenizer import ScriptError
from viz_option.utils.logging import log_event

_EXPRESSION_USE_RE = re.compile(r"\$DATA\s*[.\[]")
_OPTION_ASSIGN_RE = re.compile(r"(?:\b(?:var|let|const)\s+)?\boption\s*=(?!=)\s*")
_QUOTED_PLACEHOLDER_RE = re.compile(r"(['\"])\$DATA\1")

_DEFAULT_TEMPLATE = """option = {
  dataset: { source: $DATA },
  xAxis: { type: 'category' },
  yAxis: { type: 'value' },
  series: [
    {
      type: 'bar',
      encode: { x: 0, y: 1 }
    }
  ]
}"""


def _serialize(config: Any) -> str:
    if isinstance(config, str):
        return config
    try:
        return json.dumps(config, ensure_ascii=False, default=str)
    except ValueError:
        # circular structures
        return str(config)


def is_template_config(config: Any) -> bool:
    """Return True when the config (text or object) references `$DATA`."""
    if config is None:
        return False
    return DATA_PLACEHOLDER in _serialize(config)


def _uses_expressions(text: str) -> bool:
    return bool(_EXPRESSION_USE_RE.search(text)) or f"...{DATA_PLACEHOLDER}" in text


def _as_function_body(text: str) -> str:
    """Rewrite option text so that running it as a function body returns the option."""
    if _OPTION_ASSIGN_RE.search(text):
        stripped = text.strip()
        match = _OPTION_ASSIGN_RE.match(stripped)
        if match:
            return "return " + stripped[match.end() :]
        return text + "\nreturn option;"
    stripped = text.strip()
    if stripped.startswith("{"):
        return f"return {stripped}"
    if stripped.startswith("return"):
        return stripped
    return f"{text}\nreturn option;"


def _evaluate_with_rows(text: str, rows: List[Any]) -> Any:
    body = _as_function_body(text)
    return run_function_body(body, sandbox_bindings(rows), declare=("option",), result_name="option")


def _substitute_literal(text: str, rows: List[Any]) -> Any:
    payload = json.dumps(rows, ensure_ascii=False, default=str)
    unquoted = _QUOTED_PLACEHOLDER_RE.sub(lambda _: DATA_PLACEHOLDER, text)
    try:
        return json.loads(unquoted.replace(DATA_PLACEHOLDER, payload))
    except json.JSONDecodeError:
        pass

    # Script text: bind the serialized rows instead of splicing them into the
    # source, so large datasets stay within the sandbox limits.
    bindings = sandbox_bindings(json.loads(payload))
    stripped = unquoted.strip()
    match = _OPTION_ASSIGN_RE.match(stripped)
    if match:
        stripped = stripped[match.end() :]
    elif _OPTION_ASSIGN_RE.search(stripped):
        return run_function_body(stripped, bindings, declare=("option",), result_name="option")
    return evaluate_expression(stripped, bindings)


def interpolate_data(config: Any, rows: List[Any] | None) -> Dict[str, Any]:
    """Resolve `$DATA` in config text (or a templated object) against rows.

    Never raises: any failure is logged and yields an empty dict.
    """
    data = list(rows or [])
    text = _serialize(config) if config is not None else ""
    if not text.strip():
        return {}

    if _uses_expressions(text):
        try:
            result = _evaluate_with_rows(text, data)
            if isinstance(result, dict):
                return result
        except ScriptError as exc:
            log_event("template.interpolate.expression_failed", {"error": str(exc)}, level="debug")

    try:
        result = _substitute_literal(text, data)
    except ScriptError as exc:
        log_event("template.interpolate.error", {"error": str(exc), "chars": len(text)}, level="warning")
        return {}
    if not isinstance(result, dict):
        log_event("template.interpolate.error", {"error": "result is not an object"}, level="warning")
        return {}
    return result


def prepare_config_for_storage(config: Any) -> Any:
    """Swap an embedded `dataset.source` row list for the placeholder."""
    if not config or isinstance(config, str):
        return config
    if not isinstance(config, dict) or is_template_config(config):
        return config

    dataset = config.get("dataset")
    if isinstance(dataset, dict):
        source = dataset.get("source")
        if isinstance(source, list) and source:
            return {**config, "dataset": {**dataset, "source": DATA_PLACEHOLDER}}
    return config


def default_advanced_template() -> str:
    return _DEFAULT_TEMPLATE
