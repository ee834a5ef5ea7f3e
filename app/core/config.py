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
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    title_verifier_max_chars: int
    tesseract_cmd: str | None
    ocr_language: str
    ocr_timeout_s: float
    ocr_max_workers: int
    preprocess_min_width: int
    preprocess_border_px: int
    credential_similarity_threshold: float
    certificate_upload_dir: str
    certificate_max_bytes: int
    extracted_text_preview_chars: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "10/minute") or "10/minute",
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
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
    title_verifier_max_chars=_get_env_int("TITLE_VERIFIER_MAX_CHARS", 3000),
    tesseract_cmd=_get_env("TESSERACT_CMD"),
    ocr_language=_get_env("OCR_LANGUAGE", "eng") or "eng",
    ocr_timeout_s=_get_env_float("OCR_TIMEOUT_S", 30.0),
    ocr_max_workers=_get_env_int("OCR_MAX_WORKERS", 4),
    preprocess_min_width=_get_env_int("PREPROCESS_MIN_WIDTH", 2400),
    preprocess_border_px=_get_env_int("PREPROCESS_BORDER_PX", 50),
    credential_similarity_threshold=_get_env_float("CREDENTIAL_SIMILARITY_THRESHOLD", 0.85),
    certificate_upload_dir=_get_env("CERTIFICATE_UPLOAD_DIR", "uploads/certificates") or "uploads/certificates",
    certificate_max_bytes=_get_env_int("CERTIFICATE_MAX_BYTES", 5 * 1024 * 1024),
    extracted_text_preview_chars=_get_env_int("EXTRACTED_TEXT_PREVIEW_CHARS", 1500),
)

if settings.ocr_max_workers < 1:
    raise RuntimeError("OCR_MAX_WORKERS must be at least 1.")

if not 0.0 < settings.credential_similarity_threshold <= 1.0:
    raise RuntimeError("CREDENTIAL_SIMILARITY_THRESHOLD must be in (0, 1].")
