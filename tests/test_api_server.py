from __future__ import annotations

from fastapi.testclient import TestClient

from viz_option.api.server import MAX_ROWS, app


client = TestClient(app)

ROWS = [{"month": "Jan", "sales": 100}, {"month": "Feb", "sales": 150}]


def test_health() -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_generate_rejects_large_rows() -> None:
    payload = {
        "chart_type": "bar",
        "rows": [{"x": i} for i in range(MAX_ROWS + 1)],
    }
    response = client.post("/option/generate", json=payload)
    assert response.status_code == 413
    body = response.json()
    assert body["detail"]["code"] == "ROWS_LIMIT_EXCEEDED"


def test_generate_returns_option_with_request_id() -> None:
    response = client.post("/option/generate", json={"chart_type": "bar", "rows": ROWS, "config": {}})

    assert response.status_code == 200
    body = response.json()
    assert body["request_id"].startswith("vo-")
    assert body["option"]["series"][0]["name"] == "sales"


def test_generate_tolerates_loosely_typed_config() -> None:
    response = client.post(
        "/option/generate",
        json={"chart_type": "bar", "rows": ROWS, "config": {"legend": True, "yColumns": "sales"}},
    )

    assert response.status_code == 200
    series = response.json()["option"]["series"]
    assert [item["name"] for item in series] == ["sales"]


def test_parse_returns_strategy_and_function_source() -> None:
    text = "option = { series: [{ label: { formatter: (p) => p.name } }] }"

    response = client.post("/option/parse", json={"text": text})

    assert response.status_code == 200
    body = response.json()
    assert body["strategy"] == "full_execution"
    assert body["is_complete"] is True
    assert body["option"]["series"][0]["label"]["formatter"] == "(p) => p.name"


def test_parse_failure_maps_to_422() -> None:
    response = client.post("/option/parse", json={"text": "no object here"})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "CONFIG_PARSE_ERROR"


def test_format_returns_option_text() -> None:
    response = client.post("/option/format", json={"option": {"title": {"text": "Hi"}}})

    assert response.status_code == 200
    assert response.json()["text"] == "option = {\n  title: {\n    text: 'Hi'\n  }\n};"


def test_interpolate_and_prepare_storage() -> None:
    prepared = client.post(
        "/option/prepare-storage",
        json={"config": {"dataset": {"source": ROWS}, "series": []}},
    ).json()

    assert prepared["templated"] is True
    assert prepared["config"]["dataset"]["source"] == "$DATA"

    response = client.post(
        "/option/interpolate",
        json={"text": "option = { dataset: { source: $DATA } }", "rows": ROWS},
    )

    assert response.status_code == 200
    assert response.json()["option"]["dataset"]["source"] == ROWS


def test_non_finite_numbers_become_null() -> None:
    response = client.post("/option/interpolate", json={"text": "{ a: 1 / 0, b: NaN }", "rows": []})

    assert response.status_code == 200
    assert response.json()["option"] == {"a": None, "b": None}


def test_preview_reports_warnings() -> None:
    response = client.post(
        "/option/preview",
        json={"chart_type": "line", "rows": ROWS, "config": {}, "advanced_text": "option = { broken"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "generated"
    assert body["warnings"]
    assert body["option"]["series"][0]["type"] == "line"
