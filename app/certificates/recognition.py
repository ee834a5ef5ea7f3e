from __future__ import annotations

import logging
import string
from enum import IntEnum
from pathlib import Path
from typing import Protocol, Union

import pytesseract
from PIL import Image

from app.core.config import settings

logger = logging.getLogger(__name__)

if settings.tesseract_cmd:
    pytesseract.pytesseract.tesseract_cmd = settings.tesseract_cmd

RecognitionInput = Union[str, Path, Image.Image]

CHAR_WHITELIST = string.ascii_uppercase + string.ascii_lowercase + string.digits + "- "


class SegmentationMode(IntEnum):
    """Tesseract page segmentation modes used by the extraction battery."""

    SINGLE_COLUMN = 4
    SINGLE_BLOCK = 6
    SPARSE_TEXT = 11


class TextRecognizer(Protocol):
    def recognize(self, image: RecognitionInput, mode: SegmentationMode) -> str: ...


def tesseract_config(mode: SegmentationMode) -> str:
    return (
        f"--psm {int(mode)} "
        f'-c "tessedit_char_whitelist={CHAR_WHITELIST}" '
        "-c preserve_interword_spaces=1"
    )


class TesseractRecognizer:
    def __init__(
        self,
        *,
        language: str | None = None,
        timeout_s: float | None = None,
        tesseract_cmd: str | None = None,
    ) -> None:
        self._language = language or settings.ocr_language
        self._timeout_s = settings.ocr_timeout_s if timeout_s is None else timeout_s
        if tesseract_cmd and tesseract_cmd != pytesseract.pytesseract.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image: RecognitionInput, mode: SegmentationMode) -> str:
        """Return recognized text, or an empty string when recognition fails or times out."""
        source = str(image) if isinstance(image, Path) else image
        try:
            text = pytesseract.image_to_string(
                source,
                lang=self._language,
                config=tesseract_config(mode),
                timeout=self._timeout_s,
            )
        except Exception as exc:  # noqa: BLE001 - timeouts surface as RuntimeError
            logger.warning("ocr_failed psm=%s: %s", int(mode), exc)
            return ""
        return text or ""
