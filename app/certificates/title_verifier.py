from __future__ import annotations

import asyncio
import logging
import re
from functools import lru_cache

from pydantic import ValidationError

from app.ai.config import AIConfig, load_ai_config
from app.ai.factory import get_ai_client
from app.ai.types import AIClient, ChatMessage
from app.core.config import settings
from app.schemas.certificates import TitleVerdict

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)

SYSTEM_PROMPT = (
    "You review skill listings on a learning marketplace. "
    "You compare a listing title with text read from the author's certificate by OCR. "
    "Respond with a single JSON object and nothing else."
)

_USER_PROMPT_TEMPLATE = """Skill title submitted by the author:
"{title}"

Text extracted from the certificate by OCR (may contain recognition noise):
\"\"\"
{certificate_text}
\"\"\"

Answer two questions.

1. Appropriateness: judge the skill title on its own, ignoring the certificate.
   Is it free of offensive, sexual, hateful, violent or otherwise inappropriate content?

2. Relevance: decide what course or subject the certificate covers and classify
   how the skill title relates to it:
   - "same": the title names the same course or subject
   - "subset": the title is a narrower specialization of the certificate subject
   - "superset": the title is a broader area that includes the certificate subject
   - "related": the title is topically related to the certificate subject
   - "unrelated": the title has nothing to do with the certificate subject
   The title is relevant for "same", "subset", "superset" and "related", and not relevant for "unrelated".

Return exactly this JSON shape with no surrounding text:
{{
  "isAppropriate": true or false,
  "inappropriateReason": "why the title is inappropriate, or empty string",
  "isRelevant": true or false,
  "confidence": integer from 0 to 100,
  "relationship": "same" | "subset" | "superset" | "related" | "unrelated",
  "certificateTitle": "the course or subject named on the certificate, or empty string",
  "reason": "one sentence explaining the decision"
}}"""


def build_user_prompt(certificate_text: str, skill_title: str, *, max_chars: int) -> str:
    return _USER_PROMPT_TEMPLATE.format(
        title=skill_title.strip(),
        certificate_text=(certificate_text or "")[:max_chars],
    )


def strip_code_fence(raw: str) -> str:
    text = (raw or "").strip()
    match = _CODE_FENCE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_verdict(raw: str) -> TitleVerdict:
    """Parse a model answer into a TitleVerdict; raises ValueError when malformed."""
    payload = strip_code_fence(raw)
    if not payload:
        raise ValueError("Empty verdict payload")
    try:
        return TitleVerdict.model_validate_json(payload)
    except ValidationError as exc:
        raise ValueError(f"Malformed verdict payload: {exc.error_count()} error(s)") from exc


class TitleVerifier:
    """Asks the inference model whether a skill title fits the certificate text."""

    def __init__(
        self,
        client: AIClient | None,
        *,
        max_chars: int | None = None,
        timeout_s: float = 30.0,
    ) -> None:
        self._client = client
        self._max_chars = settings.title_verifier_max_chars if max_chars is None else max_chars
        self._timeout_s = timeout_s

    @classmethod
    def from_config(cls, cfg: AIConfig) -> "TitleVerifier":
        try:
            client = get_ai_client(cfg)
        except ValueError as exc:
            logger.error("title_verifier_misconfigured provider=%s: %s", cfg.provider, exc)
            client = None
        return cls(client, timeout_s=cfg.timeout_s)

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def verify(self, certificate_text: str, skill_title: str) -> TitleVerdict:
        if self._client is None:
            logger.warning("title_verification_skipped reason=missing_ai_credentials")
            return TitleVerdict.unavailable()

        messages = [
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(
                role="user",
                content=build_user_prompt(certificate_text, skill_title, max_chars=self._max_chars),
            ),
        ]
        try:
            raw = await asyncio.wait_for(self._client.complete(messages), timeout=self._timeout_s)
        except Exception as exc:  # noqa: BLE001 - outages are reported as a relevance failure
            logger.warning("title_verification_failed title=%r: %s", skill_title, exc)
            return TitleVerdict.failure(f"AI verification failed: {exc}", is_appropriate=True)

        try:
            verdict = parse_verdict(raw)
        except ValueError as exc:
            logger.warning("title_verification_unparseable title=%r: %s", skill_title, exc)
            return TitleVerdict.failure("AI verification returned an unreadable response.", is_appropriate=True)

        logger.info(
            "title_verification_done relevant=%s appropriate=%s relationship=%s confidence=%s",
            verdict.is_relevant,
            verdict.is_appropriate,
            verdict.relationship,
            verdict.confidence,
        )
        return verdict


@lru_cache(maxsize=1)
def get_title_verifier() -> TitleVerifier:
    return TitleVerifier.from_config(load_ai_config())
