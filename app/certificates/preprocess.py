from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from PIL import Image, ImageFilter, ImageOps

from app.core.config import settings

logger = logging.getLogger(__name__)

Variant = Literal["default", "high_contrast", "inverted"]

VARIANTS: tuple[str, ...] = ("default", "high_contrast", "inverted")

# out = 1.5 * in - 64 keeps mid-grey (128) fixed
_CONTRAST_SLOPE = 1.5
_CONTRAST_OFFSET = -(128 * 0.5)


def processed_path_for(source: str | Path, variant: str, token: str = "") -> Path:
    """Derive the output path for a preprocessed variant, next to the source file."""
    source_path = Path(source)
    suffix = f"_processed_{variant}"
    if token:
        suffix += f"_{token}"
    return source_path.with_name(f"{source_path.stem}{suffix}.png")


def _upscale(image: Image.Image, min_width: int) -> Image.Image:
    long_edge = max(image.width, image.height)
    if long_edge <= 0 or long_edge >= min_width:
        return image
    scale = min_width / long_edge
    size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
    return image.resize(size, Image.Resampling.LANCZOS)


def _normalize(image: Image.Image) -> Image.Image:
    return ImageOps.autocontrast(image, cutoff=1)


def _apply_variant(grey: Image.Image, variant: str) -> Image.Image:
    if variant == "high_contrast":
        stretched = _normalize(grey)
        return stretched.point(lambda value: max(0, min(255, round(value * _CONTRAST_SLOPE + _CONTRAST_OFFSET))))
    if variant == "inverted":
        return _normalize(ImageOps.invert(grey))
    return _normalize(grey).filter(ImageFilter.UnsharpMask(radius=1, percent=120, threshold=0))


def preprocess_image(
    source: str | Path,
    variant: str = "default",
    *,
    output_path: str | Path | None = None,
    min_width: int | None = None,
    border_px: int | None = None,
) -> Path:
    """Write a recognition-friendly greyscale copy of ``source`` and return its path.

    Every variant is upscaled until its long edge reaches ``min_width`` (larger
    images are left alone) and padded with a white border, since recognition
    degrades close to hard image edges. The source file is never overwritten.
    """
    if variant not in VARIANTS:
        raise ValueError(f"Unknown preprocessing variant '{variant}'. Expected one of: {', '.join(VARIANTS)}")

    source_path = Path(source)
    target = Path(output_path) if output_path is not None else processed_path_for(source_path, variant)
    if target.resolve() == source_path.resolve():
        raise ValueError("Preprocessed output must not overwrite the source image.")

    min_width = settings.preprocess_min_width if min_width is None else min_width
    border_px = settings.preprocess_border_px if border_px is None else border_px

    with Image.open(source_path) as original:
        grey = ImageOps.exif_transpose(original).convert("L")

    processed = _apply_variant(_upscale(grey, min_width), variant)
    if border_px > 0:
        processed = ImageOps.expand(processed, border=border_px, fill=255)
    processed.save(target, format="PNG")

    logger.debug(
        "certificate_preprocessed variant=%s size=%sx%s path=%s",
        variant,
        processed.width,
        processed.height,
        target,
    )
    return target
