from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from viz_option.compiler.option_generator import DEFAULT_COLORS, coerce_rows, generate_chart_option
from viz_option.models.chart_config import SINGLE_VALUE_CHART_TYPES

FIXTURES = Path(__file__).resolve().parent / "fixtures"
REGION_ROWS = [
    {"region": "East", "total": 42, "target": 50},
    {"region": "West", "total": 99, "target": 80},
]


def test_empty_rows_yield_empty_option() -> None:
    assert generate_chart_option("bar", [], {}) == {}
    assert generate_chart_option("bar", None, None) == {}


def test_bar_scenario_keeps_row_order() -> None:
    rows = [{"month": "Jan", "sales": 100}, {"month": "Feb", "sales": 150}]

    option = generate_chart_option("bar", rows, {})

    assert len(option["series"]) == 1
    series = option["series"][0]
    assert series["name"] == "sales"
    assert series["type"] == "bar"
    assert series["encode"] == {"x": "month", "y": "sales", "tooltip": ["month", "sales"]}
    assert [row["month"] for row in option["dataset"]["source"]] == ["Jan", "Feb"]
    assert option["dataset"]["dimensions"] == ["month", "sales"]
    assert option["xAxis"]["type"] == "category"


def test_column_defaulting_uses_first_key_for_x() -> None:
    option = generate_chart_option("line", [{"a": 1, "b": 2}], {})

    assert option["dataset"]["dimensions"] == ["a", "b"]
    assert [series["name"] for series in option["series"]] == ["b"]


def test_legacy_aliases_are_honoured() -> None:
    rows = [{"m": "Jan", "x": 1, "y": 2, "z": 3}]

    option = generate_chart_option(
        "bar", rows, {"labelColumn": "m", "dataColumns": ["y", "z"], "colorScheme": ["#111"]}
    )

    assert option["dataset"]["dimensions"] == ["m", "y", "z"]
    assert option["color"] == ["#111"]


def test_base_option_defaults() -> None:
    option = generate_chart_option("bar", REGION_ROWS, {})

    assert option["backgroundColor"] == "transparent"
    assert option["color"] == DEFAULT_COLORS
    assert option["title"]["left"] == "center"
    assert option["tooltip"]["trigger"] == "axis"
    assert option["legend"]["top"] == "bottom"
    assert option["grid"]["containLabel"] is True


def test_title_and_legend_can_be_hidden_or_overridden() -> None:
    hidden = generate_chart_option("bar", REGION_ROWS, {"title": {"show": False}, "legend": {"show": False}})
    custom = generate_chart_option("bar", REGION_ROWS, {"title": "Totals", "grid": {"top": 5}})

    assert hidden["title"] == {"show": False}
    assert hidden["legend"] == {"show": False}
    assert custom["title"]["text"] == "Totals"
    assert custom["grid"]["top"] == 5
    assert custom["grid"]["left"] == "5%"


def test_area_renders_as_smooth_filled_line() -> None:
    option = generate_chart_option("area", REGION_ROWS, {"yColumns": ["total"]})
    series = option["series"][0]

    assert series["type"] == "line"
    assert series["areaStyle"] == {"opacity": 0.3}
    assert series["smooth"] is True
    assert generate_chart_option("scatter", REGION_ROWS, {})["series"][0]["smooth"] is False


def test_axis_overrides_and_label_rotation() -> None:
    option = generate_chart_option("bar", REGION_ROWS, {"xAxis": {"labelRotate": 45, "name": "Region"}})

    assert option["xAxis"]["axisLabel"]["rotate"] == 45
    assert option["xAxis"]["name"] == "Region"


def test_array_binding_emits_raw_series_data() -> None:
    option = generate_chart_option("bar", REGION_ROWS, {"dataBinding": "arrays"})

    assert "dataset" not in option
    assert option["xAxis"]["data"] == ["East", "West"]
    assert option["series"][0]["data"] == [42, 99]


@pytest.mark.parametrize("chart_type", SINGLE_VALUE_CHART_TYPES)
def test_single_value_types_ignore_extra_y_columns(chart_type: str) -> None:
    option = generate_chart_option(chart_type, REGION_ROWS, {})

    assert len(option["series"]) == 1
    assert "target" not in str(option["series"][0])


def test_pie_variants() -> None:
    pie = generate_chart_option("pie", REGION_ROWS, {})["series"][0]
    doughnut = generate_chart_option("doughnut", REGION_ROWS, {})
    rose = generate_chart_option("rose", REGION_ROWS, {})["series"][0]

    assert pie["radius"] == "70%"
    assert pie["encode"]["value"] == "total"
    assert doughnut["series"][0]["radius"] == ["40%", "70%"]
    assert doughnut["tooltip"]["trigger"] == "item"
    assert rose["roseType"] == "area"
    assert rose["radius"] == ["20%", "70%"]


def test_radar_uses_rows_as_indicators() -> None:
    option = generate_chart_option("radar", REGION_ROWS, {})

    indicator = option["radar"]["indicator"]
    assert [item["name"] for item in indicator] == ["East", "West"]
    assert indicator[0]["max"] == pytest.approx(60.0)
    assert indicator[1]["max"] == pytest.approx(118.8)
    assert [series["name"] for series in option["series"]] == ["total", "target"]
    assert option["series"][0]["data"][0]["value"] == [42, 99]


def test_treemap_and_funnel_shapes() -> None:
    treemap = generate_chart_option("treemap", REGION_ROWS, {})["series"][0]
    funnel = generate_chart_option("funnel", REGION_ROWS, {})["series"][0]

    assert treemap["data"] == [{"name": "East", "value": 42}, {"name": "West", "value": 99}]
    assert funnel["sort"] == "descending"
    assert funnel["gap"] == 2


def test_gauge_scenario_reads_row_zero_only() -> None:
    rows = [{"region": "East", "total": 42}, {"region": "West", "total": 99}]

    option = generate_chart_option("gauge", rows, {})

    assert option["series"][0]["data"] == [{"value": 42}]


def test_gauge_range_and_formatter() -> None:
    option = generate_chart_option(
        "gauge", REGION_ROWS, {"valueColumn": "target", "min": 0, "target": 100, "suffix": "%"}
    )
    series = option["series"][0]

    assert series["data"] == [{"value": 50}]
    assert series["min"] == 0
    assert series["max"] == 100
    assert series["detail"]["formatter"] == "{value}%"


def test_heatmap_point_count() -> None:
    rows = [{"day": "Mon", "a": 1, "b": None}, {"day": "Tue", "a": 3, "b": 4}, {"day": "Mon", "a": 5, "b": 6}]

    option = generate_chart_option("heatmap", rows, {})
    points = option["series"][0]["data"]

    assert len(points) == 3 * 2
    assert points[1] == [0, 1, 0]
    assert option["xAxis"]["data"] == ["Mon", "Tue"]
    assert option["yAxis"]["data"] == ["a", "b"]


def test_unknown_type_falls_back_to_bar() -> None:
    option = generate_chart_option("sparkline", REGION_ROWS, {})

    assert option["series"][0]["type"] == "bar"
    assert "dataset" in option


def test_series_params_override_by_name() -> None:
    option = generate_chart_option(
        "bar", REGION_ROWS, {"seriesParams": {"total": {"type": "line", "stack": "s1"}}}
    )

    assert option["series"][0]["type"] == "line"
    assert option["series"][0]["stack"] == "s1"
    assert option["series"][1]["type"] == "bar"


def test_generate_is_idempotent() -> None:
    config = {"title": {"text": "t"}, "seriesParams": {"total": {"stack": "a"}}}

    assert generate_chart_option("bar", REGION_ROWS, config) == generate_chart_option("bar", REGION_ROWS, config)


def test_dataframe_rows_are_converted_to_records() -> None:
    df = pd.read_csv(FIXTURES / "monthly_sales.csv")

    rows = coerce_rows(df)
    option = generate_chart_option("line", df, {"yColumns": ["sales", "cost"]})

    assert rows[1] == {"month": "Feb", "sales": 150, "cost": None, "region": "West"}
    assert option["dataset"]["source"][0]["month"] == "Jan"
    assert [series["name"] for series in option["series"]] == ["sales", "cost"]


@pytest.mark.parametrize(
    "config",
    [
        {"legend": True},
        {"yColumns": "total"},
        {"xColumn": 0, "title": 5},
        {"dataColumns": 7, "grid": "wide"},
    ],
)
def test_loosely_typed_config_still_generates_bar(config: dict) -> None:
    option = generate_chart_option("bar", REGION_ROWS, config)

    assert option["series"][0]["type"] == "bar"
    assert option["legend"]["top"] == "bottom"
    assert option["grid"]["containLabel"] is True


def test_single_y_column_string_is_accepted() -> None:
    option = generate_chart_option("bar", REGION_ROWS, {"yColumns": "total"})

    assert [series["name"] for series in option["series"]] == ["total"]


def test_gradient_colors_pass_through() -> None:
    gradient = {"type": "linear", "x": 0, "y": 0, "x2": 0, "y2": 1, "colorStops": []}

    option = generate_chart_option("bar", REGION_ROWS, {"colors": [gradient, "#fff"]})

    assert option["color"] == [gradient, "#fff"]
