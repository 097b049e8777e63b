from __future__ import annotations

import json
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from viz_option.metrics.evaluator import EvalCase, evaluate_cases

_MONTHLY_ROWS = [
    {"month": "Jan", "sales": 120, "cost": 80},
    {"month": "Feb", "sales": 150, "cost": 95},
    {"month": "Mar", "sales": 90, "cost": 70},
]
_REGION_ROWS = [
    {"region": "East", "total": 42},
    {"region": "West", "total": 99},
    {"region": "North", "total": 17},
]


def _default_cases() -> list[EvalCase]:
    return [
        EvalCase(name="bar_basic", chart_type="bar", rows=_MONTHLY_ROWS),
        EvalCase(
            name="line_titled",
            chart_type="line",
            rows=_MONTHLY_ROWS,
            config={"title": {"text": "Monthly 'sales'"}, "yColumns": ["sales"]},
        ),
        EvalCase(name="area_legacy", chart_type="area", rows=_MONTHLY_ROWS, config={"labelColumn": "month"}),
        EvalCase(name="doughnut_basic", chart_type="doughnut", rows=_REGION_ROWS),
        EvalCase(name="radar_basic", chart_type="radar", rows=_MONTHLY_ROWS),
        EvalCase(name="funnel_basic", chart_type="funnel", rows=_REGION_ROWS),
        EvalCase(name="treemap_basic", chart_type="treemap", rows=_REGION_ROWS),
        EvalCase(name="gauge_row_zero", chart_type="gauge", rows=_REGION_ROWS, config={"suffix": "%"}),
        EvalCase(name="heatmap_basic", chart_type="heatmap", rows=_MONTHLY_ROWS),
        EvalCase(name="unknown_type", chart_type="sparkline", rows=_MONTHLY_ROWS),
        EvalCase(name="empty_rows", chart_type="bar", rows=[]),
    ]


def main() -> None:
    summary = evaluate_cases(_default_cases())
    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
