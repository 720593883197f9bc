"""Upload storage on local disk, served under /uploads."""

import logging
import time
from pathlib import Path

from fastapi import UploadFile

from app.config import get_settings
from app.services.errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)
settings = get_settings()

UPLOAD_URL_PREFIX = "/uploads"

RESUME_TYPES = {"application/pdf": ".pdf"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def upload_root() -> Path:
    return Path(settings.upload_dir)


def _suffix(upload: UploadFile, kind: str) -> str:
    content_type = (upload.content_type or "").lower()
    suffix = Path(upload.filename or "").suffix.lower()

    if kind == "resume":
        if content_type not in RESUME_TYPES:
            raise ValidationError("Please upload a PDF file")
        return RESUME_TYPES[content_type]

    if not content_type.startswith("image/"):
        raise ValidationError("Please upload an image file")
    if suffix not in IMAGE_EXTENSIONS:
        suffix = "." + content_type.split("/", 1)[1].split("+", 1)[0]
    return suffix


async def save_upload(upload: UploadFile, owner_id, kind: str) -> str:
    """Write an uploaded file to disk and return its public path.

    ``kind`` is ``resume`` (PDF only), ``picture`` or ``logo`` (images).
    Files are named ``<owner>-<unix millis><ext>``.
    """
    if not upload or not upload.filename:
        raise ValidationError("No file uploaded")

    suffix = _suffix(upload, kind)
    raw = await upload.read()
    if not raw:
        raise ValidationError("Uploaded file is empty")
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(raw) > max_bytes:
        raise ValidationError(f"File exceeds {settings.max_upload_size_mb}MB")

    filename = f"{owner_id}-{int(time.time() * 1000)}{suffix}"
    target = upload_root() / filename
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(raw)
    except OSError as e:
        logger.error("Failed to store %s upload for %s: %s", kind, owner_id, e)
        raise ExternalServiceError("Could not save the uploaded file") from e

    logger.info("Stored %s upload %s (%d bytes)", kind, filename, len(raw))
    return f"{UPLOAD_URL_PREFIX}/{filename}"
