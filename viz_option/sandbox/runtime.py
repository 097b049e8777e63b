"""Entry points for running option scripts inside the sandbox."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from viz_option.sandbox.interpreter import Interpreter
from viz_option.sandbox.parser import parse_expression, parse_program
from viz_option.sandbox.tokenizer import ScriptError

# Host method bodies are plain Python; coerce their failures into script errors.
_HOST_FAILURES = (TypeError, ValueError, IndexError, KeyError, OverflowError, ZeroDivisionError, MemoryError)


def evaluate_expression(source: str, bindings: Dict[str, Any]) -> Any:
    """Evaluate `source` as a single expression and return its value."""
    try:
        node = parse_expression(source)
        return Interpreter(bindings).evaluate(node)
    except ScriptError:
        raise
    except RecursionError as exc:
        raise ScriptError("script nesting is too deep") from exc
    except _HOST_FAILURES as exc:
        raise ScriptError(str(exc) or type(exc).__name__) from exc


def run_function_body(
    source: str,
    bindings: Dict[str, Any],
    *,
    declare: Iterable[str] = (),
    result_name: Optional[str] = None,
) -> Any:
    """Run `source` as the body of a function and return its result.

    The body sees `bindings` as globals and `declare` as pre-declared locals.
    An explicit `return` wins; otherwise the value of `result_name` is returned.
    """
    try:
        statements = parse_program(source)
        return Interpreter(bindings).run_body(statements, predeclared=declare, result_name=result_name)
    except ScriptError:
        raise
    except RecursionError as exc:
        raise ScriptError("script nesting is too deep") from exc
    except _HOST_FAILURES as exc:
        raise ScriptError(str(exc) or type(exc).__name__) from exc
