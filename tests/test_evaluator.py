from __future__ import annotations

from viz_option.metrics.evaluator import EvalCase, evaluate_cases


def test_evaluate_cases_reports_round_trip_rates() -> None:
    rows = [{"month": "Jan", "sales": 100}, {"month": "Feb", "sales": 150}]
    cases = [
        EvalCase(name="bar", chart_type="bar", rows=rows),
        EvalCase(name="gauge", chart_type="gauge", rows=rows, config={"prefix": "$"}),
        EvalCase(name="empty", chart_type="bar", rows=[]),
    ]

    summary = evaluate_cases(cases)

    assert summary["case_count"] == 3
    assert summary["idempotent_rate_pct"] == 100.0
    assert summary["format_roundtrip_rate_pct"] == 100.0
    # only the bar case carries an embedded dataset
    assert summary["template_case_count"] == 1
    assert summary["template_roundtrip_rate_pct"] == 100.0
    assert [r["name"] for r in summary["results"]] == ["bar", "gauge", "empty"]


def test_evaluate_cases_handles_no_cases() -> None:
    summary = evaluate_cases([])

    assert summary["case_count"] == 0
    assert summary["format_roundtrip_rate_pct"] == 0.0
    assert summary["avg_latency_ms"] == 0.0
