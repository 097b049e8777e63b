"""차트 옵션 생성기.

- (chart_type, rows, config) → ECharts 스타일 옵션 dict 로 변환한다.
- 순수 함수: 같은 입력이면 항상 같은 출력, 예외 없음.
- 알 수 없는 타입은 bar 분기로 그린다.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from viz_option.models.chart_config import (
    CARTESIAN_CHART_TYPES,
    GENERATED_CHART_TYPES,
    ChartConfig,
    coerce_chart_config,
)

DEFAULT_COLORS = [
    "#00f5d4",
    "#7b2cbf",
    "#ff6b6b",
    "#ffd93d",
    "#4cc9f0",
    "#f72585",
    "#4895ef",
    "#80ed99",
    "#e63946",
    "#a8dadc",
]
_FONT_FAMILY = "'Outfit', sans-serif"
_TITLE_COLOR = "#f0f0f5"
_MUTED_TEXT_COLOR = "#a0a0b0"
_AXIS_LABEL_COLOR = "#606070"
_LINE_COLOR = "#2a2a3a"
_TOOLTIP_BG = "#1e1e2a"
_BORDER_COLOR = "#151520"
_GAUGE_TICK_COLOR = "#999"
_RADAR_HEADROOM = 1.2

Rows = List[Dict[str, Any]]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def _clean_cell(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, float) and math.isnan(value):
        return None
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy scalar
        try:
            return _clean_cell(value.item())
        except (TypeError, ValueError):
            return value
    return value


def coerce_rows(rows: Union[pd.DataFrame, Iterable[Dict[str, Any]], None]) -> Rows:
    """Accept a DataFrame or a row list and return plain dict records."""
    if rows is None:
        return []
    if isinstance(rows, pd.DataFrame):
        records = rows.to_dict(orient="records")
        return [{str(k): _clean_cell(v) for k, v in record.items()} for record in records]
    return [dict(row) for row in rows if isinstance(row, dict)]


def _resolve_columns(rows: Rows, config: ChartConfig) -> tuple[str, List[str]]:
    first = rows[0]
    keys = list(first.keys())
    x_column = config.x_column or (keys[0] if keys else "")
    if config.y_columns is not None:
        y_columns = list(config.y_columns)
    else:
        y_columns = [key for key in keys if key != x_column]
    return x_column, y_columns


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


# ---------------------------------------------------------------------------
# Base option
# ---------------------------------------------------------------------------


def _title_block(config: ChartConfig) -> Dict[str, Any]:
    title = config.title
    if isinstance(title, dict) and title.get("show") is False:
        return {"show": False}
    block: Dict[str, Any] = {}
    if isinstance(title, str):
        block["text"] = title
    block.update(
        {
            "left": "center",
            "textStyle": {"color": _TITLE_COLOR, "fontSize": 16, "fontWeight": 600},
            "subtextStyle": {"color": _MUTED_TEXT_COLOR},
        }
    )
    if isinstance(title, dict):
        block.update(title)
    return block


def _tooltip_block(config: ChartConfig) -> Dict[str, Any]:
    return {
        "trigger": "axis",
        "backgroundColor": _TOOLTIP_BG,
        "borderColor": _LINE_COLOR,
        "textStyle": {"color": _MUTED_TEXT_COLOR},
        **(config.tooltip or {}),
    }


def _legend_block(config: ChartConfig) -> Dict[str, Any]:
    legend = config.legend or {}
    if legend.get("show") is False:
        return {"show": False}
    return {"top": "bottom", "textStyle": {"color": _MUTED_TEXT_COLOR}, **legend}


def _base_option(config: ChartConfig) -> Dict[str, Any]:
    colors = config.colors if config.colors is not None else list(DEFAULT_COLORS)
    option: Dict[str, Any] = {
        "backgroundColor": config.background_color or "transparent",
        "textStyle": {"fontFamily": _FONT_FAMILY},
        "color": colors,
        "title": _title_block(config),
        "tooltip": _tooltip_block(config),
        "legend": _legend_block(config),
        "grid": {
            "containLabel": True,
            "left": "5%",
            "right": "5%",
            "bottom": "10%",
            "top": "15%",
            **(config.grid or {}),
        },
    }
    if config.visual_map:
        option["visualMap"] = dict(config.visual_map)
    return option


def _item_tooltip(config: ChartConfig) -> Dict[str, Any]:
    return {**_tooltip_block(config), "trigger": "item", **(config.tooltip or {})}


def _dataset(rows: Rows, x_column: str, y_columns: List[str]) -> Dict[str, Any]:
    return {"source": rows, "dimensions": [x_column, *y_columns]}


def _pair_encode(x_column: str, y_column: Optional[str]) -> Dict[str, Any]:
    return {"itemName": x_column, "value": y_column, "tooltip": [x_column, y_column]}


# ---------------------------------------------------------------------------
# Per-type builders
# ---------------------------------------------------------------------------


def _cartesian(chart_type: str, rows: Rows, config: ChartConfig, x_column: str, y_columns: List[str]) -> Dict[str, Any]:
    series_type = "line" if chart_type == "area" else chart_type
    x_axis_config = config.x_axis or {}
    x_axis: Dict[str, Any] = {
        "type": "category",
        "axisLabel": {"color": _AXIS_LABEL_COLOR, "rotate": x_axis_config.get("labelRotate") or 0},
        "axisLine": {"lineStyle": {"color": _LINE_COLOR}},
    }
    y_axis: Dict[str, Any] = {
        "type": "value",
        "splitLine": {"lineStyle": {"color": _LINE_COLOR, "type": "dashed"}},
        "axisLabel": {"color": _AXIS_LABEL_COLOR},
    }

    series: List[Dict[str, Any]] = []
    for column in y_columns:
        item: Dict[str, Any] = {"name": column, "type": series_type}
        if config.uses_array_binding:
            item["data"] = [row.get(column) for row in rows]
        else:
            item["encode"] = {"x": x_column, "y": column, "tooltip": [x_column, column]}
        if chart_type == "area":
            item["areaStyle"] = {"opacity": 0.3}
        item["smooth"] = chart_type in ("area", "line")
        item["emphasis"] = {"focus": "series"}
        series.append(item)

    option: Dict[str, Any] = {}
    if config.uses_array_binding:
        x_axis["data"] = [row.get(x_column) for row in rows]
    else:
        option["dataset"] = _dataset(rows, x_column, y_columns)
    option["xAxis"] = {**x_axis, **x_axis_config}
    option["yAxis"] = {**y_axis, **(config.y_axis or {})}
    option["series"] = series
    return option


def _pie(chart_type: str, rows: Rows, config: ChartConfig, x_column: str, y_columns: List[str]) -> Dict[str, Any]:
    value_column = y_columns[0] if y_columns else None
    if chart_type == "rose":
        series: Dict[str, Any] = {
            "name": x_column,
            "type": "pie",
            "radius": ["20%", "70%"],
            "roseType": "area",
            "itemStyle": {"borderRadius": 5},
        }
    else:
        series = {
            "name": x_column,
            "type": "pie",
            "radius": ["40%", "70%"] if chart_type == "doughnut" else "70%",
            "center": ["50%", "50%"],
            "itemStyle": {"borderRadius": 5, "borderColor": _BORDER_COLOR, "borderWidth": 2},
            "label": {"show": False},
        }
    series["encode"] = _pair_encode(x_column, value_column)
    return {
        "dataset": _dataset(rows, x_column, y_columns),
        "tooltip": _item_tooltip(config),
        "series": [series],
    }


def _radar_max(row: Dict[str, Any], y_columns: List[str]) -> Optional[float]:
    values = [_to_float(row.get(column)) for column in y_columns]
    if not values or any(math.isnan(value) for value in values):
        # non-numeric cells leave the axis unbounded
        return None
    return max(values) * _RADAR_HEADROOM


def _radar(rows: Rows, config: ChartConfig, x_column: str, y_columns: List[str]) -> Dict[str, Any]:
    indicator = []
    for row in rows:
        entry: Dict[str, Any] = {"name": row.get(x_column)}
        upper = _radar_max(row, y_columns)
        if upper is not None:
            entry["max"] = upper
        indicator.append(entry)
    return {
        "dataset": _dataset(rows, x_column, y_columns),
        "radar": {
            "indicator": indicator,
            "splitArea": {"show": False},
            "axisLine": {"lineStyle": {"color": _LINE_COLOR}},
        },
        "series": [
            {
                "name": column,
                "type": "radar",
                "data": [{"value": [row.get(column) for row in rows], "name": column}],
            }
            for column in y_columns
        ],
    }


def _funnel(rows: Rows, config: ChartConfig, x_column: str, y_columns: List[str]) -> Dict[str, Any]:
    value_column = y_columns[0] if y_columns else None
    return {
        "dataset": _dataset(rows, x_column, y_columns),
        "tooltip": _item_tooltip(config),
        "series": [
            {
                "name": "Funnel",
                "type": "funnel",
                "left": "10%",
                "top": 60,
                "bottom": 60,
                "width": "80%",
                "min": 0,
                "max": 100,
                "minSize": "0%",
                "maxSize": "100%",
                "sort": "descending",
                "gap": 2,
                "label": {"show": True, "position": "inside"},
                "encode": _pair_encode(x_column, value_column),
            }
        ],
    }


def _treemap(rows: Rows, config: ChartConfig, x_column: str, y_columns: List[str]) -> Dict[str, Any]:
    value_column = y_columns[0] if y_columns else None
    return {
        "tooltip": _item_tooltip(config),
        "series": [
            {
                "name": x_column,
                "type": "treemap",
                "data": [
                    {"name": row.get(x_column), "value": row.get(value_column) if value_column else None}
                    for row in rows
                ],
                "label": {"show": True, "formatter": "{b}"},
                "itemStyle": {"borderColor": _BORDER_COLOR, "borderWidth": 2, "gapWidth": 2},
                "levels": [
                    {"itemStyle": {"borderWidth": 0, "gapWidth": 5}},
                    {"itemStyle": {"gapWidth": 1}},
                ],
            }
        ],
    }


def _gauge(rows: Rows, config: ChartConfig, y_columns: List[str]) -> Dict[str, Any]:
    value_column = config.value_column or (y_columns[0] if y_columns else None)
    value = rows[0].get(value_column, 0) if value_column else 0
    series: Dict[str, Any] = {"type": "gauge"}
    if value_column:
        series["name"] = value_column
    if config.min_value is not None:
        series["min"] = config.min_value
    if config.max_value is not None:
        series["max"] = config.max_value
    elif config.target is not None:
        series["max"] = config.target
    detail: Dict[str, Any] = {"valueAnimation": True, "fontSize": 30, "offsetCenter": [0, "70%"]}
    if config.prefix or config.suffix:
        detail["formatter"] = f"{config.prefix or ''}{{value}}{config.suffix or ''}"
    series.update(
        {
            "progress": {"show": True, "width": 18},
            "axisLine": {"lineStyle": {"width": 18}},
            "axisTick": {"show": False},
            "splitLine": {"length": 15, "lineStyle": {"width": 2, "color": _GAUGE_TICK_COLOR}},
            "axisLabel": {"distance": 25, "color": _GAUGE_TICK_COLOR, "fontSize": 12},
            "anchor": {"show": True, "showAbove": True, "size": 25, "itemStyle": {"borderWidth": 10}},
            "title": {"show": False},
            "detail": detail,
            "data": [{"value": value}],
        }
    )
    return {"series": [series]}


def _heatmap(rows: Rows, config: ChartConfig, x_column: str, y_columns: List[str]) -> Dict[str, Any]:
    x_values: List[Any] = []
    for row in rows:
        value = row.get(x_column)
        if value not in x_values:
            x_values.append(value)
    points = [
        [row_idx, y_idx, row.get(column) or 0]
        for row_idx, row in enumerate(rows)
        for y_idx, column in enumerate(y_columns)
    ]
    return {
        "tooltip": {"position": "top"},
        "grid": {"height": "50%", "top": "10%"},
        "xAxis": {"type": "category", "data": x_values, "splitArea": {"show": True}},
        "yAxis": {"type": "category", "data": list(y_columns), "splitArea": {"show": True}},
        "visualMap": {
            "min": 0,
            "max": 10,
            "calculable": True,
            "orient": "horizontal",
            "left": "center",
            "bottom": "15%",
            **(config.visual_map or {}),
        },
        "series": [
            {
                "name": "Heatmap",
                "type": "heatmap",
                "data": points,
                "label": {"show": True},
                "emphasis": {"itemStyle": {"shadowBlur": 10, "shadowColor": "rgba(0, 0, 0, 0.5)"}},
            }
        ],
    }


def _apply_series_params(option: Dict[str, Any], config: ChartConfig) -> None:
    params = config.series_params or {}
    if not params:
        return
    merged = []
    for series in option.get("series", []):
        override = params.get(series.get("name")) if isinstance(series.get("name"), str) else None
        merged.append({**series, **override} if isinstance(override, dict) else series)
    option["series"] = merged


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def generate_chart_option(
    chart_type: str,
    rows: Union[pd.DataFrame, Iterable[Dict[str, Any]], None],
    config: Union[ChartConfig, Dict[str, Any], None] = None,
) -> Dict[str, Any]:
    """Build the visualization option for one chart.

    Args:
        chart_type: Chart type tag; unknown tags render as bar.
        rows: Row dicts (or a DataFrame) in display order.
        config: Declarative config (dict in camelCase or ChartConfig).

    Returns:
        The option dict, or `{}` when there are no rows.
    """
    records = coerce_rows(rows)
    if not records:
        return {}
    chart_config = coerce_chart_config(config)
    kind = str(chart_type or "").strip().lower()
    if kind not in GENERATED_CHART_TYPES:
        kind = "bar"
    x_column, y_columns = _resolve_columns(records, chart_config)

    option = _base_option(chart_config)
    if kind in CARTESIAN_CHART_TYPES:
        option.update(_cartesian(kind, records, chart_config, x_column, y_columns))
    elif kind in ("pie", "doughnut", "rose"):
        option.update(_pie(kind, records, chart_config, x_column, y_columns))
    elif kind == "radar":
        option.update(_radar(records, chart_config, x_column, y_columns))
    elif kind == "funnel":
        option.update(_funnel(records, chart_config, x_column, y_columns))
    elif kind == "treemap":
        option.update(_treemap(records, chart_config, x_column, y_columns))
    elif kind == "gauge":
        option.update(_gauge(records, chart_config, y_columns))
    elif kind == "heatmap":
        option.update(_heatmap(records, chart_config, x_column, y_columns))

    _apply_series_params(option, chart_config)
    return option
