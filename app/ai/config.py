from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    api_key: str | None = None
    base_url: str | None = None
    timeout_s: float = 30.0
    max_retries: int = 2

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "openai").strip().lower()
    model = os.getenv("AI_MODEL", "gpt-4o-mini").strip()
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    if _looks_like_placeholder(api_key):
        api_key = ""
    try:
        timeout_s = float(os.getenv("AI_TIMEOUT_S", "30"))
    except ValueError:
        timeout_s = 30.0
    try:
        max_retries = int(os.getenv("AI_MAX_RETRIES", "2"))
    except ValueError:
        max_retries = 2
    return AIConfig(
        provider=provider,
        model=model,
        api_key=api_key or None,
        base_url=(os.getenv("OPENAI_BASE_URL") or "").strip() or None,
        timeout_s=timeout_s,
        max_retries=max_retries,
    )
