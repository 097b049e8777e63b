"""선언형 차트 설정(ChartConfig) 모델."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from viz_option.utils.logging import log_event

# 생성기가 처리하는 타입 (그 외 타입은 bar 분기로 처리)
CARTESIAN_CHART_TYPES = ("bar", "line", "area", "scatter")
GENERATED_CHART_TYPES = CARTESIAN_CHART_TYPES + (
    "pie",
    "doughnut",
    "rose",
    "radar",
    "funnel",
    "treemap",
    "gauge",
    "heatmap",
)
# 생성기 밖(테이블/KPI 위젯)에서 그리는 타입
EXTERNAL_CHART_TYPES = ("table", "kpi")
# 첫 번째 y 컬럼만 쓰는 타입
SINGLE_VALUE_CHART_TYPES = ("pie", "doughnut", "rose", "funnel", "treemap", "gauge")

DATA_BINDING_DATASET = "dataset"
DATA_BINDING_ARRAYS = "arrays"

# 레거시 필드명 → 표준 필드명
_LEGACY_ALIASES = (
    ("labelColumn", "xColumn"),
    ("dataColumns", "yColumns"),
    ("colorScheme", "colors"),
)
# 고급 편집기에서 파싱한 옵션 중 설정으로 되돌릴 수 있는 필드
_OPTION_FIELDS = (
    "title",
    "legend",
    "grid",
    "tooltip",
    "xAxis",
    "yAxis",
    "backgroundColor",
    "visualMap",
    "seriesParams",
)


# 입력: 편집기 UI/저장소에서 온 설정 dict (camelCase)
# 출력: ChartConfig 모델
# 모든 필드는 선택이며, 없으면 생성기 기본값을 쓴다
class ChartConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    # 컬럼 선택
    x_column: Optional[str] = Field(default=None, alias="xColumn")
    y_columns: Optional[List[str]] = Field(default=None, alias="yColumns")
    value_column: Optional[str] = Field(default=None, alias="valueColumn")
    # 시리즈 이름별 오버라이드
    series_params: Optional[Dict[str, Dict[str, Any]]] = Field(default=None, alias="seriesParams")
    # 팔레트
    colors: Optional[List[Any]] = None
    # 공통 블록 (렌더러 전용 하위 필드는 그대로 통과)
    title: Optional[Union[str, Dict[str, Any]]] = None
    legend: Optional[Dict[str, Any]] = None
    grid: Optional[Dict[str, Any]] = None
    tooltip: Optional[Dict[str, Any]] = None
    x_axis: Optional[Dict[str, Any]] = Field(default=None, alias="xAxis")
    y_axis: Optional[Dict[str, Any]] = Field(default=None, alias="yAxis")
    background_color: Optional[str] = Field(default=None, alias="backgroundColor")
    visual_map: Optional[Dict[str, Any]] = Field(default=None, alias="visualMap")
    # dataset(기본) | arrays(레거시 원시 배열 바인딩)
    data_binding: Optional[str] = Field(default=None, alias="dataBinding")
    # KPI/게이지 전용
    target: Optional[float] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    min_value: Optional[float] = Field(default=None, alias="min")
    max_value: Optional[float] = Field(default=None, alias="max")
    thresholds: Optional[List[Dict[str, Any]]] = None
    previous_value: Optional[float] = Field(default=None, alias="previousValue")
    trend_label: Optional[str] = Field(default=None, alias="trendLabel")

    @model_validator(mode="before")
    @classmethod
    def _normalize_input(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        migrated = dict(data)
        for legacy, canonical in _LEGACY_ALIASES:
            if legacy not in migrated:
                continue
            legacy_value = migrated.pop(legacy)
            current = migrated.get(canonical)
            # xColumn: 빈 문자열도 "없음"으로 본다
            missing = current is None or (canonical == "xColumn" and not current)
            if missing and legacy_value is not None:
                migrated[canonical] = legacy_value
        # 컬럼 하나만 문자열로 준 경우
        if isinstance(migrated.get("yColumns"), str):
            migrated["yColumns"] = [migrated["yColumns"]]
        for key in ("xColumn", "valueColumn"):
            value = migrated.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                migrated[key] = str(value)
        return migrated

    def to_payload(self) -> Dict[str, Any]:
        """Return the alias-keyed dict form without null fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @property
    def uses_array_binding(self) -> bool:
        return (self.data_binding or DATA_BINDING_DATASET) == DATA_BINDING_ARRAYS


def normalize_chart_config(config: Union[ChartConfig, Dict[str, Any], None]) -> ChartConfig:
    if isinstance(config, ChartConfig):
        return config
    return ChartConfig.model_validate(config or {})


def coerce_chart_config(config: Union[ChartConfig, Dict[str, Any], None]) -> ChartConfig:
    """Like normalize_chart_config, but drops fields that fail validation."""
    if isinstance(config, ChartConfig):
        return config
    if not isinstance(config, dict):
        return ChartConfig()
    payload = dict(config)
    while True:
        try:
            return ChartConfig.model_validate(payload)
        except ValidationError as exc:
            failed = {error["loc"][0] for error in exc.errors() if error["loc"]}
            # a migrated legacy key reports under its canonical name
            failed.update(legacy for legacy, canonical in _LEGACY_ALIASES if canonical in failed)
            invalid = failed & set(payload)
            if not invalid:
                return ChartConfig()
            log_event(
                "chart_config.fields_dropped",
                {"fields": sorted(str(key) for key in invalid)},
                level="warning",
            )
            for key in invalid:
                payload.pop(key)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _recognized_fields(parsed: Dict[str, Any]) -> Dict[str, Any]:
    native = {field.alias or name for name, field in ChartConfig.model_fields.items()}
    native.update(legacy for legacy, _ in _LEGACY_ALIASES)
    fields: Dict[str, Any] = {}
    for key, value in parsed.items():
        if key == "color":
            fields["colors"] = value
        elif key in _OPTION_FIELDS or key in native:
            fields[key] = value
    return fields


def merge_option_fields(
    config: Union[ChartConfig, Dict[str, Any], None],
    parsed: Dict[str, Any],
) -> ChartConfig:
    """Fold hand-edited option fields back into a declarative config.

    Only fields the generator understands are kept; everything else in
    `parsed` (series, dataset, ...) is dropped.
    """
    base = normalize_chart_config(config).to_payload()
    incoming = ChartConfig.model_validate(_recognized_fields(parsed or {})).to_payload()
    return ChartConfig.model_validate(_deep_merge(base, incoming))
