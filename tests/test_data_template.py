from __future__ import annotations

from viz_option.compiler.data_template import (
    default_advanced_template,
    interpolate_data,
    is_template_config,
    prepare_config_for_storage,
)
from viz_option.compiler.object_formatter import stringify_chart_config
from viz_option.compiler.option_generator import generate_chart_option

ROWS = [
    {"region": "East", "total": 42, "note": "O'Brien"},
    {"region": "West", "total": 99, "note": None},
]


def test_is_template_config_detects_placeholder() -> None:
    assert is_template_config("option = { dataset: { source: $DATA } }") is True
    assert is_template_config({"dataset": {"source": "$DATA"}}) is True
    assert is_template_config({"dataset": {"source": []}}) is False
    assert is_template_config(None) is False


def test_default_template_interpolates_rows() -> None:
    option = interpolate_data(default_advanced_template(), ROWS)

    assert option["dataset"]["source"] == ROWS
    assert option["series"][0]["encode"] == {"x": 0, "y": 1}


def test_expression_on_placeholder_is_evaluated() -> None:
    text = """
    option = {
      dataset: { source: $DATA.filter(r => r.total > 50) },
      series: [{ type: 'bar' }]
    }
    """

    option = interpolate_data(text, ROWS)

    assert option["dataset"]["source"] == [ROWS[1]]


def test_statements_before_option_are_wrapped() -> None:
    text = """
    const names = $DATA.map(r => r.region);
    option = { xAxis: { data: names }, series: [] };
    """

    option = interpolate_data(text, ROWS)

    assert option["xAxis"]["data"] == ["East", "West"]


def test_bare_object_with_spread_placeholder() -> None:
    option = interpolate_data("{ dataset: { source: [...$DATA] } }", ROWS)

    assert option == {"dataset": {"source": ROWS}}


def test_json_text_and_templated_dict_are_substituted() -> None:
    assert interpolate_data('{"dataset": {"source": "$DATA"}}', ROWS) == {"dataset": {"source": ROWS}}
    assert interpolate_data({"dataset": {"source": "$DATA"}}, ROWS) == {"dataset": {"source": ROWS}}


def test_interpolate_never_raises() -> None:
    assert interpolate_data("option = { broken: ", ROWS) == {}
    assert interpolate_data("$DATA.map(", ROWS) == {}
    assert interpolate_data("", ROWS) == {}
    assert interpolate_data("option = { a: window }", ROWS) == {}


def test_prepare_for_storage_replaces_embedded_rows() -> None:
    config = {"dataset": {"source": [{"a": 1}], "dimensions": ["a"]}, "series": []}

    stored = prepare_config_for_storage(config)

    assert stored == {"dataset": {"source": "$DATA", "dimensions": ["a"]}, "series": []}
    assert config["dataset"]["source"] == [{"a": 1}]


def test_prepare_for_storage_passes_through_other_inputs() -> None:
    text = "option = { dataset: { source: $DATA } }"
    empty = {"dataset": {"source": []}}

    assert prepare_config_for_storage(text) is text
    assert prepare_config_for_storage(empty) is empty
    assert prepare_config_for_storage(None) is None


def test_placeholder_round_trip_restores_rows() -> None:
    option = generate_chart_option("bar", ROWS, {"yColumns": ["total"]})

    restored = interpolate_data(stringify_chart_config(prepare_config_for_storage(option)), ROWS)

    assert restored["dataset"]["source"] == ROWS
    assert restored["series"] == option["series"]


def test_oversized_array_write_yields_empty_option() -> None:
    text = "const a = $DATA.slice(0); a[1e12] = 1; option = { dataset: { source: $DATA } }"

    assert interpolate_data(text, ROWS) == {}


def test_negative_index_on_rows_is_undefined() -> None:
    assert interpolate_data("option = { v: $DATA[-1] }", ROWS) == {"v": None}
