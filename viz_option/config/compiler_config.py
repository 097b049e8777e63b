"""Compiler settings loaded from the environment."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load project-level .env regardless of current working directory.
_DOTENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_DOTENV_PATH)


def _env_bool(name: str, default: bool = True) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = str(os.getenv(name, "")).strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


# Placeholder protocol (reserved token, not configurable)
DATA_PLACEHOLDER = "$DATA"

# Sandbox limits
SANDBOX_MAX_STEPS = _env_int("VIZ_SANDBOX_MAX_STEPS", 100000, minimum=100)
SANDBOX_MAX_SOURCE_CHARS = _env_int("VIZ_SANDBOX_MAX_SOURCE_CHARS", 200000, minimum=16)
# Longest array or string a script may build
SANDBOX_MAX_LENGTH = _env_int("VIZ_SANDBOX_MAX_LENGTH", 1000000, minimum=16)

# Object formatter
FORMAT_INDENT = _env_int("VIZ_FORMAT_INDENT", 2, minimum=1)
INLINE_ARRAY_MAX = _env_int("VIZ_INLINE_ARRAY_MAX", 5, minimum=0)

# Parser diagnostics
PARSE_DEBUG_EVENTS = _env_bool("VIZ_PARSE_DEBUG_EVENTS", True)

# HTTP facade
MAX_ROWS = _env_int("VIZ_MAX_ROWS", 10000, minimum=1)
MAX_TEXT_LENGTH = _env_int("VIZ_MAX_TEXT_LENGTH", 200000, minimum=1)
CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")
    if origin.strip()
]

# Logging / event sink
LOG_LEVEL = str(os.getenv("VIZ_LOG_LEVEL", "INFO")).strip().upper() or "INFO"
LOG_TEXT_PREVIEW = _env_int("VIZ_LOG_TEXT_PREVIEW", 200, minimum=16)
MONGODB_URI = str(os.getenv("MONGODB_URI", "")).strip()
MONGODB_DB = str(os.getenv("MONGODB_DB", "VizOption")).strip() or "VizOption"
EVENT_COLLECTION_NAME = str(os.getenv("VIZ_EVENT_COLLECTION", "app_events")).strip() or "app_events"
