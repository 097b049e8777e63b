"""Evaluation helpers for round-trip quality metrics."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from statistics import mean
from typing import Any, Dict, List

from viz_option.compiler.config_parser import ConfigParseError, parse_chart_config
from viz_option.compiler.data_template import interpolate_data, prepare_config_for_storage
from viz_option.compiler.object_formatter import stringify_chart_config
from viz_option.compiler.option_generator import generate_chart_option
from viz_option.utils.logging import log_event


@dataclass
class EvalCase:
    name: str
    chart_type: str
    rows: List[Dict[str, Any]]
    config: Dict[str, Any] = field(default_factory=dict)


def _safe_rate(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round((numerator / denominator) * 100.0, 2)


def _format_roundtrip(option: Dict[str, Any]) -> bool:
    try:
        return parse_chart_config(stringify_chart_config(option)) == option
    except ConfigParseError:
        return False


def _template_roundtrip(option: Dict[str, Any], rows: List[Dict[str, Any]]) -> bool | None:
    dataset = option.get("dataset")
    if not isinstance(dataset, dict) or not isinstance(dataset.get("source"), list):
        return None
    stored = prepare_config_for_storage(option)
    restored = interpolate_data(stringify_chart_config(stored), rows)
    restored_dataset = restored.get("dataset") if isinstance(restored, dict) else None
    return isinstance(restored_dataset, dict) and restored_dataset.get("source") == rows


def evaluate_cases(cases: List[EvalCase]) -> Dict[str, Any]:
    results: List[Dict[str, Any]] = []
    for case in cases:
        started = time.perf_counter()
        option = generate_chart_option(case.chart_type, case.rows, case.config)
        idempotent = generate_chart_option(case.chart_type, case.rows, case.config) == option
        format_ok = _format_roundtrip(option)
        template_ok = _template_roundtrip(option, case.rows)
        latency_ms = (time.perf_counter() - started) * 1000.0
        results.append(
            {
                "name": case.name,
                "chart_type": case.chart_type,
                "series_count": len(option.get("series", [])),
                "idempotent": idempotent,
                "format_roundtrip": format_ok,
                "template_roundtrip": template_ok,
                "latency_ms": round(latency_ms, 2),
            }
        )
        if not (idempotent and format_ok and template_ok is not False):
            log_event("eval.case.failed", {"name": case.name, "chart_type": case.chart_type}, level="warning")

    idempotent_count = sum(1 for r in results if r["idempotent"])
    format_count = sum(1 for r in results if r["format_roundtrip"])
    template_cases = [r for r in results if r["template_roundtrip"] is not None]
    template_count = sum(1 for r in template_cases if r["template_roundtrip"])
    latency_values = [float(r["latency_ms"]) for r in results]

    summary = {
        "case_count": len(results),
        "idempotent_rate_pct": _safe_rate(idempotent_count, len(results)),
        "format_roundtrip_rate_pct": _safe_rate(format_count, len(results)),
        "template_case_count": len(template_cases),
        "template_roundtrip_rate_pct": _safe_rate(template_count, len(template_cases)),
        "avg_latency_ms": round(mean(latency_values), 2) if latency_values else 0.0,
        "max_latency_ms": round(max(latency_values), 2) if latency_values else 0.0,
        "results": results,
    }
    return summary
