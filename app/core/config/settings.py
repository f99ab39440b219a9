from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    rate_limit: str
    upload_rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    youtube_api_key: str | None
    video_search_timeout_s: float
    course_max_results: int
    course_min_duration_seconds: int
    course_video_duration: str
    course_lookup_timeout_s: float
    course_catalog_path: str | None
    resume_min_chars: int
    resume_prompt_max_chars: int
    max_upload_bytes: int


settings = Settings(
    rate_limit=_get_env("RATE_LIMIT", "10/minute") or "10/minute",
    upload_rate_limit=_get_env("UPLOAD_RATE_LIMIT", "20/minute") or "20/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    youtube_api_key=_get_env("YOUTUBE_API_KEY") or _get_env("GOOGLE_YOUTUBE_API_KEY"),
    video_search_timeout_s=_get_env_float("VIDEO_SEARCH_TIMEOUT_S", 8.0),
    course_max_results=_get_env_int("COURSE_MAX_RESULTS", 2),
    course_min_duration_seconds=_get_env_int("COURSE_MIN_DURATION_SECONDS", 600),
    course_video_duration=(_get_env("COURSE_VIDEO_DURATION", "medium") or "medium").strip().lower(),
    course_lookup_timeout_s=_get_env_float("COURSE_LOOKUP_TIMEOUT_S", 6.0),
    course_catalog_path=_get_env("COURSE_CATALOG_PATH"),
    resume_min_chars=_get_env_int("RESUME_MIN_CHARS", 10),
    resume_prompt_max_chars=_get_env_int("RESUME_PROMPT_MAX_CHARS", 6000),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
)

if settings.course_max_results < 1:
    raise RuntimeError("COURSE_MAX_RESULTS must be at least 1.")

if settings.course_video_duration not in {"any", "short", "medium", "long"}:
    raise RuntimeError("COURSE_VIDEO_DURATION must be one of: any, short, medium, long.")

if settings.resume_min_chars < 1:
    raise RuntimeError("RESUME_MIN_CHARS must be at least 1.")
