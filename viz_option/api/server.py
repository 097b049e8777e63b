from __future__ import annotations

import math
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from viz_option.compiler.config_parser import ConfigParseError, parse_chart_config_verbose
from viz_option.compiler.data_template import (
    interpolate_data,
    is_template_config,
    prepare_config_for_storage,
)
from viz_option.compiler.editor_roundtrip import build_preview
from viz_option.compiler.object_formatter import stringify_chart_config
from viz_option.compiler.option_generator import generate_chart_option
from viz_option.config.compiler_config import CORS_ALLOW_ORIGINS, MAX_ROWS
from viz_option.models.option_spec import (
    FormatRequest,
    FormatResponse,
    GenerateRequest,
    InterpolateRequest,
    OptionResponse,
    ParseRequest,
    ParseResponse,
    PrepareStorageRequest,
    PrepareStorageResponse,
    PreviewRequest,
    PreviewResponse,
)
from viz_option.sandbox.charting import HostFunction, HostObject
from viz_option.sandbox.interpreter import ScriptFunction
from viz_option.utils.logging import log_event, new_request_id

app = FastAPI(title="Visualization Option API")

if CORS_ALLOW_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _sanitize_non_finite(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        return value if math.isfinite(float(value)) else None
    if isinstance(value, dict):
        return {str(k): _sanitize_non_finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_non_finite(item) for item in value]
    # script functions travel as their source text
    if isinstance(value, ScriptFunction):
        return value.source
    if isinstance(value, (HostFunction, HostObject)):
        return value.name
    return value


def _validate_rows(rows: List[Dict[str, Any]]) -> None:
    if len(rows) > MAX_ROWS:
        raise HTTPException(
            status_code=413,
            detail={"code": "ROWS_LIMIT_EXCEEDED", "message": f"rows size must be <= {MAX_ROWS}"},
        )


@app.get("/health")
def health_check() -> dict:
    return {"status": "ok"}


@app.post("/option/generate", response_model=OptionResponse)
def generate(req: GenerateRequest) -> OptionResponse:
    _validate_rows(req.rows)
    request_id = new_request_id()
    log_event(
        "request.generate",
        {"request_id": request_id, "chart_type": req.chart_type, "row_count": len(req.rows)},
    )
    option = generate_chart_option(req.chart_type, req.rows, req.config)
    return OptionResponse(option=_sanitize_non_finite(option), request_id=request_id)


@app.post("/option/parse", response_model=ParseResponse)
def parse(req: ParseRequest) -> ParseResponse:
    request_id = new_request_id()
    log_event("request.parse", {"request_id": request_id, "chars": len(req.text)})
    try:
        option, strategy = parse_chart_config_verbose(req.text)
    except ConfigParseError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "CONFIG_PARSE_ERROR", "message": str(exc)},
        ) from exc
    return ParseResponse(
        option=_sanitize_non_finite(option),
        strategy=strategy,
        is_complete="series" in option,
        request_id=request_id,
    )


@app.post("/option/format", response_model=FormatResponse)
def format_option(req: FormatRequest) -> FormatResponse:
    request_id = new_request_id()
    log_event("request.format", {"request_id": request_id, "keys": len(req.option)})
    return FormatResponse(text=stringify_chart_config(req.option), request_id=request_id)


@app.post("/option/interpolate", response_model=OptionResponse)
def interpolate(req: InterpolateRequest) -> OptionResponse:
    _validate_rows(req.rows)
    request_id = new_request_id()
    log_event("request.interpolate", {"request_id": request_id, "row_count": len(req.rows)})
    option = interpolate_data(req.text, req.rows)
    return OptionResponse(option=_sanitize_non_finite(option), request_id=request_id)


@app.post("/option/prepare-storage", response_model=PrepareStorageResponse)
def prepare_storage(req: PrepareStorageRequest) -> PrepareStorageResponse:
    request_id = new_request_id()
    log_event("request.prepare_storage", {"request_id": request_id})
    prepared = prepare_config_for_storage(req.config)
    return PrepareStorageResponse(
        config=_sanitize_non_finite(prepared),
        templated=is_template_config(prepared),
        request_id=request_id,
    )


@app.post("/option/preview", response_model=PreviewResponse)
def preview(req: PreviewRequest) -> PreviewResponse:
    _validate_rows(req.rows)
    request_id = new_request_id()
    log_event(
        "request.preview",
        {
            "request_id": request_id,
            "chart_type": req.chart_type,
            "row_count": len(req.rows),
            "advanced": bool(req.advanced_text),
        },
    )
    result = build_preview(req.chart_type, req.rows, req.config, req.advanced_text)
    return PreviewResponse(
        option=_sanitize_non_finite(result.option),
        source=result.source,
        warnings=result.warnings,
        request_id=request_id,
    )
