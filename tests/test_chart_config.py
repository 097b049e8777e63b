from __future__ import annotations

from viz_option.models.chart_config import (
    ChartConfig,
    coerce_chart_config,
    merge_option_fields,
    normalize_chart_config,
)


def test_legacy_aliases_migrate_to_canonical_fields() -> None:
    config = ChartConfig.model_validate(
        {"labelColumn": "month", "dataColumns": ["sales"], "colorScheme": ["#000"]}
    )

    assert config.x_column == "month"
    assert config.y_columns == ["sales"]
    assert config.colors == ["#000"]
    assert "labelColumn" not in config.to_payload()


def test_canonical_fields_win_over_legacy_aliases() -> None:
    config = ChartConfig.model_validate(
        {"xColumn": "x", "labelColumn": "legacy", "yColumns": [], "dataColumns": ["a"]}
    )

    assert config.x_column == "x"
    assert config.y_columns == []


def test_empty_x_column_falls_back_to_legacy_label() -> None:
    config = ChartConfig.model_validate({"xColumn": "", "labelColumn": "region"})

    assert config.x_column == "region"


def test_extra_fields_are_kept_in_payload() -> None:
    payload = normalize_chart_config({"xColumn": "a", "customFlag": True, "min": 0}).to_payload()

    assert payload == {"xColumn": "a", "customFlag": True, "min": 0}


def test_normalize_accepts_model_and_none() -> None:
    config = ChartConfig(xColumn="a")

    assert normalize_chart_config(config) is config
    assert normalize_chart_config(None).to_payload() == {}


def test_merge_option_fields_deep_merges_recognized_fields() -> None:
    base = {"xColumn": "month", "title": {"text": "Old", "left": "left"}}
    parsed = {
        "title": {"text": "New"},
        "color": ["#abc"],
        "series": [{"type": "bar"}],
        "dataset": {"source": []},
        "yAxis": {"name": "Sales"},
    }

    merged = merge_option_fields(base, parsed).to_payload()

    assert merged["xColumn"] == "month"
    assert merged["title"] == {"text": "New", "left": "left"}
    assert merged["colors"] == ["#abc"]
    assert merged["yAxis"] == {"name": "Sales"}
    assert "series" not in merged
    assert "dataset" not in merged


def test_coerce_drops_only_invalid_fields() -> None:
    config = coerce_chart_config({"legend": True, "xColumn": "month", "labelColumn": "x", "dataColumns": 3})

    assert config.to_payload() == {"xColumn": "month"}


def test_coerce_accepts_non_dict_input() -> None:
    assert coerce_chart_config(["not", "a", "config"]).to_payload() == {}
    assert coerce_chart_config(None).to_payload() == {}


def test_scalar_column_fields_are_coerced() -> None:
    config = ChartConfig.model_validate({"xColumn": 2024, "yColumns": "sales"})

    assert config.x_column == "2024"
    assert config.y_columns == ["sales"]
