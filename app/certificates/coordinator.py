from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from pathlib import Path
from typing import Callable

from app.certificates.errors import CertificateExtractionError
from app.certificates.extraction import extract_certificate_text
from app.certificates.matching import verify_credential_id
from app.certificates.recognition import TextRecognizer
from app.certificates.title_verifier import TitleVerifier, get_title_verifier
from app.core.config import settings
from app.schemas.certificates import TitleVerdict, VerificationResult

logger = logging.getLogger(__name__)

EXTRACTION_FAILED_MESSAGE = "Failed to verify certificate. Please ensure the image is clear and readable."


class VerificationStage(str, Enum):
    START = "start"
    EXTRACTING = "extracting"
    EXTRACTION_FAILED = "extraction_failed"
    EXTRACTED = "extracted"
    MATCHING_AND_VERIFYING = "matching_and_verifying"
    DECIDED = "decided"


ProgressCallback = Callable[[VerificationStage], None]


def _emit(progress_callback: ProgressCallback | None, stage: VerificationStage) -> None:
    logger.debug("certificate_verification_stage stage=%s", stage.value)
    if progress_callback is None:
        return
    try:
        progress_callback(stage)
    except Exception:  # pragma: no cover - observers must not affect the decision
        logger.warning("certificate_progress_callback_failed stage=%s", stage.value, exc_info=True)


def _verdict_detail(verdict: TitleVerdict) -> str:
    certificate_title = verdict.certificate_title or "unknown"
    relationship = verdict.relationship or "unknown"
    return f'certificate: "{certificate_title}", relationship: {relationship}, confidence: {verdict.confidence}%'


def build_message(skill_title: str, credential_valid: bool, verdict: TitleVerdict) -> str:
    """Pick the user-facing summary; inappropriate titles are always reported first."""
    if verdict.review_unavailable:
        return (
            f'The skill title "{skill_title}" could not be reviewed because title verification is unavailable. '
            "Please try again later."
        )

    if not verdict.is_appropriate:
        reason = verdict.inappropriate_reason or verdict.reason or "the title was flagged by content review"
        return (
            f'The skill title "{skill_title}" contains inappropriate content: {reason}. '
            "Please choose a professional title that describes what you teach."
        )

    if not credential_valid and not verdict.is_relevant:
        certificate_title = verdict.certificate_title or "unknown"
        return (
            "Both credential ID and skill title verification failed. "
            f'The credential ID was not found on the certificate, and the skill title "{skill_title}" '
            f'does not match the certificate "{certificate_title}". '
            "Please ensure the credential ID matches exactly what appears on the certificate "
            "and that your skill title relates to the certificate content."
        )

    if not credential_valid:
        return (
            "Credential ID not found in certificate. Please verify the credential ID matches exactly. "
            "The skill title matches the certificate content."
        )

    if not verdict.is_relevant:
        reason = f" {verdict.reason}" if verdict.reason else ""
        return (
            f'Skill title verification failed: "{skill_title}" does not match the certificate '
            f"({_verdict_detail(verdict)}).{reason} "
            "The credential ID was found on the certificate."
        )

    return (
        f'Certificate verified successfully. Credential ID found and skill title "{skill_title}" '
        f"matches the certificate ({_verdict_detail(verdict)})."
    )


def _require(value: object, name: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValueError(f"{name} is required.")
    return text


async def verify_certificate_credential(
    certificate_path: str | Path,
    credential_id: str,
    skill_title: str,
    *,
    title_verifier: TitleVerifier | None = None,
    recognizer: TextRecognizer | None = None,
    progress_callback: ProgressCallback | None = None,
) -> VerificationResult:
    """Check that an uploaded certificate image backs a skill listing.

    The credential ID must be readable on the certificate and the skill title
    must be appropriate and topically related to it. Only missing arguments
    raise; every other outcome, including unreadable images, is reported in
    the returned result.
    """
    path = Path(_require(certificate_path, "certificate_path"))
    credential_id = _require(credential_id, "credential_id")
    skill_title = _require(skill_title, "skill_title")
    verifier = title_verifier or get_title_verifier()

    _emit(progress_callback, VerificationStage.START)
    logger.info(
        "certificate_verification_start path=%s credential_id=%s title=%r",
        path,
        credential_id,
        skill_title,
    )

    _emit(progress_callback, VerificationStage.EXTRACTING)
    extraction = asyncio.ensure_future(asyncio.to_thread(extract_certificate_text, path, recognizer=recognizer))
    try:
        corpus = await asyncio.shield(extraction)
    except asyncio.CancelledError:
        logger.warning("certificate_verification_cancelled path=%s; waiting for extraction cleanup", path)
        with contextlib.suppress(Exception):
            await extraction
        raise
    except CertificateExtractionError as exc:
        logger.error("certificate_verification_extraction_failed path=%s: %s", path, exc)
        _emit(progress_callback, VerificationStage.EXTRACTION_FAILED)
        return VerificationResult(
            success=False,
            credential_valid=False,
            title_valid=False,
            is_appropriate=True,
            message=EXTRACTION_FAILED_MESSAGE,
            error=str(exc),
        )
    _emit(progress_callback, VerificationStage.EXTRACTED)

    _emit(progress_callback, VerificationStage.MATCHING_AND_VERIFYING)
    credential_valid, verdict = await asyncio.gather(
        asyncio.to_thread(verify_credential_id, corpus, credential_id),
        verifier.verify(corpus, skill_title),
    )

    success = credential_valid and verdict.success
    result = VerificationResult(
        success=success,
        credential_valid=credential_valid,
        title_valid=verdict.success,
        is_appropriate=verdict.is_appropriate,
        inappropriate_reason=verdict.inappropriate_reason,
        confidence=verdict.confidence,
        relationship=verdict.relationship or "",
        certificate_title=verdict.certificate_title,
        ai_reason=verdict.reason,
        extracted_text=corpus[: settings.extracted_text_preview_chars],
        message=build_message(skill_title, credential_valid, verdict),
    )
    _emit(progress_callback, VerificationStage.DECIDED)
    logger.info(
        "certificate_verification_done success=%s credential_valid=%s title_valid=%s appropriate=%s",
        result.success,
        result.credential_valid,
        result.title_valid,
        result.is_appropriate,
    )
    return result
