from __future__ import annotations

import pytest

from viz_option.sandbox.charting import sandbox_bindings
from viz_option.sandbox.interpreter import Interpreter, ScriptFunction
from viz_option.sandbox.parser import parse_program
from viz_option.sandbox.runtime import evaluate_expression, run_function_body
from viz_option.sandbox.tokenizer import ScriptError, tokenize


def _eval(source: str, data=None):
    return evaluate_expression(source, sandbox_bindings(data))


def test_tokenize_skips_comments_and_reads_escapes() -> None:
    tokens = tokenize("// note\nx /* block */ = 'a\\'b\\n'")
    kinds = [(token.kind, token.value) for token in tokens]

    assert kinds == [("name", "x"), ("punct", "="), ("str", "a'b\n"), ("eof", None)]


def test_object_literal_with_array_methods() -> None:
    result = _eval("{ a: 1, b: [1, 2, 3].map(x => x * 2), c: [3, 4].filter(v => v > 3) }")

    assert result == {"a": 1, "b": [2, 4, 6], "c": [4]}


def test_template_literal_and_string_methods() -> None:
    result = _eval("`${'east'.toUpperCase()}-${(0.5).toFixed(2)}`")

    assert result == "EAST-0.50"


def test_linear_gradient_constructor_builds_plain_dict() -> None:
    result = _eval(
        "new echarts.graphic.LinearGradient(0, 0, 0, 1, "
        "[{ offset: 0, color: '#fff' }, { offset: 1, color: '#000' }])"
    )

    assert result["type"] == "linear"
    assert (result["x"], result["y"], result["x2"], result["y2"]) == (0, 0, 0, 1)
    assert [stop["color"] for stop in result["colorStops"]] == ["#fff", "#000"]
    assert result["global"] is False


def test_data_placeholder_binds_rows() -> None:
    rows = [{"region": "East", "total": 42}, {"region": "West", "total": 99}]

    result = _eval("$DATA.filter(r => r.total > 50).map(r => r.region)", rows)

    assert result == ["West"]


def test_data_placeholder_defaults_to_token_string() -> None:
    assert _eval("$DATA") == "$DATA"


@pytest.mark.parametrize("source", ["window.location", "__import__('os')", "os.system('ls')", "Math.max(1, 2)"])
def test_unknown_identifiers_are_rejected(source: str) -> None:
    with pytest.raises(ScriptError, match="is not defined"):
        _eval(source)


def test_python_attributes_are_not_reachable() -> None:
    assert _eval("'abc'.__class__") is None
    assert _eval("[].constructor") is None


def test_step_budget_stops_infinite_loop() -> None:
    with pytest.raises(ScriptError, match="budget"):
        run_function_body("while (true) {}", sandbox_bindings())


def test_small_step_budget_is_enforced() -> None:
    interpreter = Interpreter(sandbox_bindings(), max_steps=50)
    statements = parse_program("let n = 0; for (let i = 0; i < 100; i++) { n += i; }")

    with pytest.raises(ScriptError):
        interpreter.run_body(statements)


def test_function_body_with_loops_and_hoisting() -> None:
    source = """
    let total = 0;
    for (let i = 1; i <= 3; i++) {
      total += square(i);
    }
    function square(n) { return n * n; }
    option = { total: total };
    """

    result = run_function_body(source, sandbox_bindings(), declare=("option",), result_name="option")

    assert result == {"total": 14}


def test_explicit_return_wins_over_result_name() -> None:
    result = run_function_body("option = { a: 1 }; return { b: 2 };", sandbox_bindings(), declare=("option",), result_name="option")

    assert result == {"b": 2}


def test_for_of_and_spread() -> None:
    source = """
    const names = [];
    for (const row of $DATA) { names.push(row.name); }
    return { names: [...names, 'end'], merged: { ...{ a: 1 }, b: 2 } };
    """

    result = run_function_body(source, sandbox_bindings([{"name": "x"}, {"name": "y"}]))

    assert result == {"names": ["x", "y", "end"], "merged": {"a": 1, "b": 2}}


def test_optional_chaining_and_nullish() -> None:
    assert _eval("({ a: null }).a?.b") is None
    assert _eval("({ a: null }).a ?? 'fallback'") == "fallback"
    assert _eval("typeof missingName") == "undefined"


def test_const_reassignment_fails() -> None:
    with pytest.raises(ScriptError, match="constant"):
        run_function_body("const a = 1; a = 2;", sandbox_bindings())


def test_arithmetic_follows_script_semantics() -> None:
    assert _eval("1 / 0") == float("inf")
    assert _eval("'a' + 1") == "a1"
    assert _eval("7 % 3") == 1
    assert _eval("3 / 2") == 1.5
    assert _eval("1 == '1'") is True
    assert _eval("1 === '1'") is False


def test_script_function_is_callable_and_keeps_source() -> None:
    result = _eval("{ formatter: (v) => v + '%' }")
    formatter = result["formatter"]

    assert isinstance(formatter, ScriptFunction)
    assert formatter.source == "(v) => v + '%'"
    assert formatter(12) == "12%"


def test_syntax_errors_raise_script_error() -> None:
    with pytest.raises(ScriptError):
        _eval("{ a: }")
    with pytest.raises(ScriptError):
        _eval("'unterminated")


def test_large_integers_become_doubles() -> None:
    assert _eval("9007199254740993") == 9007199254740992.0
    assert _eval("9007199254740992 + 1") == 9007199254740992.0
    assert isinstance(_eval("4294967296 * 4294967296"), float)

    result = run_function_body(
        "let x = 10; for (let i = 0; i < 400; i++) { x = x * 10; } return x;",
        sandbox_bindings(),
    )

    assert result == float("inf")


def test_repeated_squaring_overflows_to_infinity() -> None:
    result = run_function_body("let x = 3; for (let i = 0; i < 64; i++) { x = x * x; } return x;", sandbox_bindings())

    assert result == float("inf")


def test_negative_index_reads_undefined() -> None:
    assert _eval("[1, 2, 3][-1]") is None
    assert _eval("'abc'[-1]") is None
    assert _eval("$DATA[-1]", [{"a": 1}]) is None


def test_negative_index_write_is_rejected() -> None:
    with pytest.raises(ScriptError, match="-1"):
        run_function_body("const a = [1, 2]; a[-1] = 9; return a;", sandbox_bindings())


def test_sparse_array_write_is_bounded() -> None:
    with pytest.raises(ScriptError, match="exceeds"):
        run_function_body("const a = []; a[1e12] = 1; return a;", sandbox_bindings())

    assert run_function_body("const a = []; a[2] = 1; return a;", sandbox_bindings()) == [None, None, 1]


def test_string_doubling_is_bounded() -> None:
    with pytest.raises(ScriptError, match="exceeds"):
        run_function_body("let s = 'ab'; while (true) { s = s + s; }", sandbox_bindings())
    with pytest.raises(ScriptError, match="exceeds"):
        _eval("'a'.padStart(1e12)")
