from __future__ import annotations

from app.ai.config import AIConfig, load_ai_config
from app.ai.types import AIClient

from app.ai.providers.openai_provider import OpenAIProvider


def get_ai_client(cfg: AIConfig | None = None) -> AIClient | None:
    """Build the inference client, or return None when no credential is configured."""
    cfg = cfg or load_ai_config()
    if not cfg.configured:
        return None

    if cfg.provider == "openai":
        return OpenAIProvider(
            model=cfg.model,
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout_s=cfg.timeout_s,
            max_retries=cfg.max_retries,
        )

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
