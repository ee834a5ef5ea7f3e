from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from PIL import Image

from app.certificates.errors import CertificateExtractionError
from app.certificates.preprocess import preprocess_image, processed_path_for
from app.certificates.recognition import (
    RecognitionInput,
    SegmentationMode,
    TesseractRecognizer,
    TextRecognizer,
)
from app.certificates.regions import CORNERS, crop_corner
from app.core.config import settings

logger = logging.getLogger(__name__)

CORPUS_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class ExtractionStrategy:
    index: int
    variant: str
    region: str
    mode: SegmentationMode

    @property
    def name(self) -> str:
        return f"{self.variant}/{self.region}/psm{int(self.mode)}"


def _build_battery() -> tuple[ExtractionStrategy, ...]:
    plan: list[tuple[str, str, SegmentationMode]] = []
    for mode in (SegmentationMode.SINGLE_BLOCK, SegmentationMode.SINGLE_COLUMN, SegmentationMode.SPARSE_TEXT):
        plan.append(("default", "full", mode))
    for corner in CORNERS:
        plan.append(("default", corner, SegmentationMode.SINGLE_BLOCK))
    plan.append(("high_contrast", "full", SegmentationMode.SINGLE_BLOCK))
    for corner in CORNERS:
        plan.append(("high_contrast", corner, SegmentationMode.SPARSE_TEXT))
    return tuple(
        ExtractionStrategy(index=i, variant=variant, region=region, mode=mode)
        for i, (variant, region, mode) in enumerate(plan)
    )


STRATEGY_BATTERY: tuple[ExtractionStrategy, ...] = _build_battery()

# Preprocessed variants in the order they are produced.
BATTERY_VARIANTS: tuple[str, ...] = tuple(dict.fromkeys(s.variant for s in STRATEGY_BATTERY))


def _inputs_for_variant(
    processed_path: Path, strategies: Sequence[ExtractionStrategy]
) -> list[tuple[ExtractionStrategy, RecognitionInput]]:
    jobs: list[tuple[ExtractionStrategy, RecognitionInput]] = []
    with Image.open(processed_path) as processed:
        processed.load()
        for strategy in strategies:
            if strategy.region == "full":
                jobs.append((strategy, processed_path))
            else:
                jobs.append((strategy, crop_corner(processed, strategy.region)))  # type: ignore[arg-type]
    return jobs


def _run_strategy(recognizer: TextRecognizer, job: tuple[ExtractionStrategy, RecognitionInput]) -> str:
    strategy, image = job
    try:
        text = recognizer.recognize(image, strategy.mode)
    except Exception as exc:  # noqa: BLE001 - one strategy must not abort the battery
        logger.warning("ocr_strategy_failed strategy=%s: %s", strategy.name, exc)
        return ""
    logger.debug("ocr_strategy_done strategy=%s chars=%s", strategy.name, len(text.strip()))
    return text


def _cleanup(paths: Sequence[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("certificate_cleanup_failed path=%s: %s", path, exc)


def extract_certificate_text(
    image_path: str | Path,
    *,
    recognizer: TextRecognizer | None = None,
    max_workers: int | None = None,
) -> str:
    """Run the full recognition battery over one certificate image.

    Non-empty results are joined in battery order. Every preprocessed file
    written during the run is removed before returning, whether the run
    succeeded, partially failed, or raised. Failing to produce the default
    variant (typically an unreadable source) raises CertificateExtractionError.
    """
    source = Path(image_path)
    recognizer = recognizer or TesseractRecognizer()
    workers = settings.ocr_max_workers if max_workers is None else max(1, max_workers)
    token = uuid.uuid4().hex[:12]
    created: list[Path] = []

    try:
        jobs: list[tuple[ExtractionStrategy, RecognitionInput]] = []
        for variant in BATTERY_VARIANTS:
            target = processed_path_for(source, variant, token)
            created.append(target)
            strategies = [s for s in STRATEGY_BATTERY if s.variant == variant]
            try:
                preprocess_image(source, variant, output_path=target)
                jobs.extend(_inputs_for_variant(target, strategies))
            except Exception as exc:  # noqa: BLE001 - only the default variant is mandatory
                if variant == "default":
                    logger.error("certificate_preprocess_failed variant=%s path=%s: %s", variant, source, exc)
                    raise CertificateExtractionError() from exc
                logger.warning("certificate_preprocess_failed variant=%s path=%s: %s", variant, source, exc)

        jobs.sort(key=lambda job: job[0].index)
        if workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ocr") as pool:
                texts = list(pool.map(lambda job: _run_strategy(recognizer, job), jobs))
        else:
            texts = [_run_strategy(recognizer, job) for job in jobs]
    finally:
        _cleanup(created)

    collected = [text for text in texts if text.strip()]
    corpus = CORPUS_SEPARATOR.join(collected)
    logger.info(
        "certificate_extraction_done strategies=%s hits=%s chars=%s",
        len(jobs),
        len(collected),
        len(corpus),
    )
    logger.debug("certificate_extraction_preview %r", corpus[:500])
    return corpus
