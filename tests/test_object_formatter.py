from __future__ import annotations

from viz_option.compiler.object_formatter import (
    format_object,
    quote_string,
    stringify_chart_config,
    to_object_literal,
)
from viz_option.sandbox.charting import sandbox_bindings
from viz_option.sandbox.runtime import evaluate_expression


def test_stringify_uses_two_space_indent_and_inline_short_arrays() -> None:
    option = {"title": {"text": "Hi"}, "series": [{"type": "bar", "data": [1, 2, 3]}]}

    text = stringify_chart_config(option)

    assert text == (
        "option = {\n"
        "  title: {\n"
        "    text: 'Hi'\n"
        "  },\n"
        "  series: [\n"
        "    {\n"
        "      type: 'bar',\n"
        "      data: [1, 2, 3]\n"
        "    }\n"
        "  ]\n"
        "};"
    )


def test_long_scalar_arrays_are_multiline() -> None:
    assert to_object_literal([1, 2, 3, 4, 5, 6]) == "[\n  1,\n  2,\n  3,\n  4,\n  5,\n  6\n]"
    assert to_object_literal([1, 2, 3, 4, 5]) == "[1, 2, 3, 4, 5]"


def test_keys_are_quoted_only_when_not_identifiers() -> None:
    assert to_object_literal({"my-key": 1, "ok_1": 2, "$id": 3}) == "{\n  'my-key': 1,\n  ok_1: 2,\n  $id: 3\n}"


def test_strings_escape_quotes_backslashes_and_control_chars() -> None:
    assert quote_string("it's") == "'it\\'s'"
    assert quote_string("a\\b") == "'a\\\\b'"
    assert quote_string("line1\nline2") == "'line1\\nline2'"


def test_scalars_render_as_script_literals() -> None:
    assert format_object(None) == "null"
    assert format_object(True) == "true"
    assert format_object(2.0) == "2"
    assert format_object(0.25) == "0.25"
    assert format_object(float("nan")) == "NaN"
    assert format_object(float("-inf")) == "-Infinity"
    assert format_object({}) == "{}"
    assert format_object([]) == "[]"


def test_script_functions_render_as_source() -> None:
    option = evaluate_expression(
        "{ label: { formatter: (p) => p.name }, tooltip: { formatter(p) { return p.value; } } }",
        sandbox_bindings(),
    )

    text = to_object_literal(option)

    assert "formatter: (p) => p.name" in text
    assert "formatter: function (p) { return p.value; }" in text


def test_formatted_text_evaluates_back_to_same_object() -> None:
    option = {
        "title": {"text": "Sales 'Q1'", "show": True},
        "color": ["#fff", "#000"],
        "series": [{"name": "a-b", "data": [1.5, None, -3]}],
    }

    restored = evaluate_expression(to_object_literal(option), sandbox_bindings())

    assert restored == option
