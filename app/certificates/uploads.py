from __future__ import annotations

import logging
import re
import secrets
import time
from pathlib import Path

from app.core.config import settings

logger = logging.getLogger(__name__)

CERTIFICATE_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png"})
CERTIFICATE_EXTENSIONS = frozenset({"jpg", "jpeg", "png"})
CERTIFICATE_TYPE_ERROR = "Only images (JPEG, JPG, PNG) files are allowed for certificates"

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
JPEG_MAGIC = b"\xff\xd8\xff"


def _content_type(mime_type: str | None) -> str:
    return (mime_type or "").split(";")[0].strip().lower()


def should_verify_certificate(mime_type: str | None) -> bool:
    """Only image certificates go through OCR verification; other formats skip it."""
    return _content_type(mime_type).startswith("image/")


def extension_from_filename(filename: str) -> str:
    if "." not in (filename or ""):
        return ""
    return filename.rsplit(".", 1)[-1].strip().lower()[:20]


def validate_certificate_upload(
    *,
    filename: str,
    content_type: str | None,
    content: bytes,
    max_bytes: int | None = None,
) -> str:
    """Validate an uploaded certificate image and return its normalized extension."""
    limit = settings.certificate_max_bytes if max_bytes is None else max_bytes
    if not content:
        raise ValueError("Certificate file is empty.")
    if len(content) > limit:
        raise ValueError(f"File size exceeds the limit of {limit / (1024 * 1024):g}MB")

    ext = extension_from_filename(filename)
    if ext not in CERTIFICATE_EXTENSIONS or _content_type(content_type) not in CERTIFICATE_MIME_TYPES:
        raise ValueError(CERTIFICATE_TYPE_ERROR)

    if ext == "png":
        if not content.startswith(PNG_MAGIC):
            raise ValueError("File signature does not match .png content.")
    elif not content.startswith(JPEG_MAGIC):
        raise ValueError("File signature does not match .jpg/.jpeg content.")
    return ext


def staged_certificate_path(filename: str, *, upload_dir: str | Path | None = None) -> Path:
    directory = Path(upload_dir or settings.certificate_upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    sanitized = re.sub(r"[^a-zA-Z0-9.]", "_", filename or "")
    ext = extension_from_filename(sanitized) or "png"
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return directory / f"certificate-{unique_suffix}.{ext}"


def stage_certificate(filename: str, content: bytes, *, upload_dir: str | Path | None = None) -> Path:
    path = staged_certificate_path(filename, upload_dir=upload_dir)
    path.write_bytes(content)
    logger.debug("certificate_staged path=%s bytes=%s", path, len(content))
    return path


def discard_certificate(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("certificate_discard_failed path=%s: %s", path, exc)
