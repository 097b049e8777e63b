"""컴파일러 이벤트 로깅.

- 콘솔: 한 줄짜리 JSON 이벤트 (`viz_option` 로거).
- 선택: MONGODB_URI 가 있으면 debug 를 제외한 이벤트를 컬렉션에 적재.
- 스크립트 원문 같은 긴 문자열은 미리보기 길이로 자른다.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from viz_option.config.compiler_config import (
    EVENT_COLLECTION_NAME,
    LOG_LEVEL,
    LOG_TEXT_PREVIEW,
    MONGODB_DB,
    MONGODB_URI,
)

LOGGER_NAME = "viz_option"
SERVICE_NAME = "viz-option"

# None: 아직 연결 시도 전, False: 비활성/실패
_sink: Optional[Collection] | bool = None


def get_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    logger.addHandler(handler)
    return logger


def new_request_id() -> str:
    """Request id shared by every event of one generate/parse/preview call."""
    return f"vo-{uuid4().hex[:12]}"


def _clip(value: Any) -> Any:
    if isinstance(value, str) and len(value) > LOG_TEXT_PREVIEW:
        return f"{value[:LOG_TEXT_PREVIEW]}...(+{len(value) - LOG_TEXT_PREVIEW} chars)"
    if isinstance(value, dict):
        return {key: _clip(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_clip(item) for item in value]
    return value


def _event_sink() -> Optional[Collection]:
    global _sink
    if _sink is False:
        return None
    if _sink is not None:
        return _sink
    if not MONGODB_URI:
        _sink = False
        return None

    try:
        client = MongoClient(MONGODB_URI, serverSelectionTimeoutMS=2000)
        collection = client[MONGODB_DB][EVENT_COLLECTION_NAME]
        collection.create_index([("event", 1), ("ts", -1)])
        collection.create_index([("request_id", 1)])
    except PyMongoError as exc:
        get_logger().warning("event sink disabled: %s", exc)
        _sink = False
        return None
    _sink = collection
    return collection


def reset_event_sink() -> None:
    """Forget the cached sink so the next event reconnects (used by tests)."""
    global _sink
    _sink = None


def build_event(event: str, payload: Dict[str, Any] | None = None, *, level: str = "info") -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "event": event,
        "ts": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "level": level.lower(),
    }
    if payload:
        data.update(_clip(payload))
    return data


def log_event(
    event: str,
    payload: Dict[str, Any] | None = None,
    *,
    level: str = "info",
) -> None:
    """Write one structured event as JSON; non-debug events also go to the sink."""
    logger = get_logger()
    data = build_event(event, payload, level=level)
    writer = getattr(logger, data["level"], logger.info)
    # str() fallback for ScriptFunction, numpy scalars and the like
    message = json.dumps(data, ensure_ascii=False, default=str)
    writer("%s", message)

    if data["level"] == "debug":
        return
    collection = _event_sink()
    if collection is None:
        return
    try:
        collection.insert_one(json.loads(message))
    except PyMongoError:
        logger.warning("event sink insert failed for %s", event)
