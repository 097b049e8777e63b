"""Advanced-editor round trip and preview assembly.

- apply_edited_text: hand-edited text → full option, or fields merged into the config.
- build_preview: decides which path renders the chart and never raises.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from viz_option.compiler.config_parser import ConfigParseError, parse_chart_config
from viz_option.compiler.data_template import interpolate_data, is_template_config
from viz_option.compiler.option_generator import coerce_rows, generate_chart_option
from viz_option.models.chart_config import (
    EXTERNAL_CHART_TYPES,
    ChartConfig,
    coerce_chart_config,
    merge_option_fields,
)
from viz_option.utils.logging import log_event

MODE_OPTION = "option"
MODE_CONFIG = "config"

SOURCE_EXTERNAL = "external"
SOURCE_TEMPLATE = "template"
SOURCE_ADVANCED = "advanced"
SOURCE_GENERATED = "generated"


@dataclass
class EditedConfig:
    mode: str
    option: Optional[Dict[str, Any]] = None
    config: Optional[ChartConfig] = None


@dataclass
class PreviewResult:
    option: Dict[str, Any]
    source: str
    warnings: List[str] = field(default_factory=list)


def apply_edited_text(
    text: str,
    config: Union[ChartConfig, Dict[str, Any], None] = None,
) -> EditedConfig:
    """Parse edited option text and decide how it feeds back into the chart.

    A parsed object with `series` is a complete option and bypasses the
    generator; anything else is merged into the declarative config.

    Raises:
        ConfigParseError: text could not be parsed, or the recognized fields
            do not fit the config model.
    """
    parsed = parse_chart_config(text)
    if "series" in parsed:
        return EditedConfig(mode=MODE_OPTION, option=parsed)
    try:
        merged = merge_option_fields(config, parsed)
    except ValueError as exc:
        raise ConfigParseError(f"Edited fields do not match the chart config: {exc}") from exc
    return EditedConfig(mode=MODE_CONFIG, config=merged)


def build_preview(
    chart_type: str,
    rows: Union[pd.DataFrame, Iterable[Dict[str, Any]], None],
    config: Union[ChartConfig, Dict[str, Any], None] = None,
    advanced_text: Optional[str] = None,
) -> PreviewResult:
    """Produce the option used to render a chart preview."""
    warnings: List[str] = []
    kind = str(chart_type or "").strip().lower()
    if kind in EXTERNAL_CHART_TYPES:
        return PreviewResult(option={}, source=SOURCE_EXTERNAL)

    records = coerce_rows(rows)
    chart_config = coerce_chart_config(config)

    text = (advanced_text or "").strip()
    if text:
        if is_template_config(text):
            option = interpolate_data(text, records)
            if option:
                return PreviewResult(option=option, source=SOURCE_TEMPLATE, warnings=warnings)
            warnings.append("template could not be resolved against the current rows")
        else:
            try:
                edited = apply_edited_text(text, chart_config)
            except ConfigParseError as exc:
                warnings.append(str(exc))
            else:
                if edited.mode == MODE_OPTION and edited.option is not None:
                    return PreviewResult(option=edited.option, source=SOURCE_ADVANCED, warnings=warnings)
                if edited.config is not None:
                    chart_config = edited.config

    if warnings:
        log_event("preview.fallback", {"chart_type": kind, "warnings": warnings}, level="warning")
    option = generate_chart_option(kind, records, chart_config)
    return PreviewResult(option=option, source=SOURCE_GENERATED, warnings=warnings)
