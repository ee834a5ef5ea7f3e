from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Literal

from rapidfuzz.distance import Levenshtein

from app.core.config import settings

logger = logging.getLogger(__name__)

_NON_CREDENTIAL_CHARS = re.compile(r"[^0-9A-Za-z-]")

# Characters text recognition commonly confuses, applied in both directions.
OCR_CONFUSIONS: tuple[tuple[str, str], ...] = (
    ("0", "o"),
    ("1", "i"),
    ("1", "l"),
    ("5", "s"),
    ("8", "b"),
)

MatchMethod = Literal["direct", "ocr_variant", "fuzzy", "none"]


@dataclass(frozen=True)
class CredentialMatch:
    found: bool
    method: MatchMethod
    matched_text: str = ""
    similarity: float = 0.0


def normalize_credential_text(value: str) -> str:
    """Drop whitespace and anything outside [A-Za-z0-9-], then lower-case."""
    return _NON_CREDENTIAL_CHARS.sub("", value or "").lower()


def ocr_confusion_variants(normalized_claim: str) -> list[str]:
    """One rewrite per confusion pair and direction, each applied globally.

    Substitutions are not combined: "0->o" and "1->i" never appear in the
    same variant.
    """
    variants: list[str] = []
    for left, right in OCR_CONFUSIONS:
        for source, target in ((left, right), (right, left)):
            if source not in normalized_claim:
                continue
            variant = normalized_claim.replace(source, target)
            if variant != normalized_claim and variant not in variants:
                variants.append(variant)
    return variants


def edit_distance(left: str, right: str) -> int:
    return Levenshtein.distance(left, right)


def similarity(left: str, right: str) -> float:
    """1 - edit_distance / longest length; two empty strings are identical."""
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(left, right) / longest


def match_credential(corpus: str, claim: str, *, threshold: float | None = None) -> CredentialMatch:
    threshold = settings.credential_similarity_threshold if threshold is None else threshold
    text = normalize_credential_text(corpus)
    target = normalize_credential_text(claim)

    logger.info("credential_match_start claim=%s search_space=%s", target, len(text))
    if not target or not text:
        return CredentialMatch(found=False, method="none")

    if target in text:
        return CredentialMatch(found=True, method="direct", matched_text=target, similarity=1.0)

    for variant in ocr_confusion_variants(target):
        if variant in text:
            logger.info("credential_match_ocr_variant variant=%s", variant)
            return CredentialMatch(found=True, method="ocr_variant", matched_text=variant, similarity=1.0)

    width = len(target)
    best = 0.0
    # No windows when the claim is longer than the corpus.
    for start in range(len(text) - width + 1):
        window = text[start : start + width]
        score = similarity(window, target)
        if score >= threshold:
            logger.info("credential_match_fuzzy window=%s similarity=%.3f", window, score)
            return CredentialMatch(found=True, method="fuzzy", matched_text=window, similarity=score)
        best = max(best, score)

    logger.info("credential_match_none best_similarity=%.3f", best)
    return CredentialMatch(found=False, method="none", similarity=best)


def verify_credential_id(corpus: str, claim: str) -> bool:
    return match_credential(corpus, claim).found
