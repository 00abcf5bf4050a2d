import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from student_records.core.config import settings
from student_records.core.errors import PayloadTooLarge, ValidationFailed

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/gif",
    "text/csv",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


@dataclass(frozen=True)
class StoredFile:
    original_name: str
    path: str
    size: int
    mime_type: str


def read_upload(file: UploadFile, max_bytes: int | None = None) -> bytes:
    limit = max_bytes or settings.max_file_size
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise PayloadTooLarge(f"File exceeds {limit // (1024 * 1024)} MB limit.")
    return data


def save_upload(file: UploadFile, upload_dir: str | None = None) -> StoredFile:
    mime_type = file.content_type or "application/octet-stream"
    if mime_type not in ALLOWED_MIME_TYPES:
        raise ValidationFailed(f"File type {mime_type} is not allowed", {"file": "unsupported type"})
    data = read_upload(file)

    directory = Path(upload_dir or settings.upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    original = file.filename or "upload"
    target = directory / f"{uuid.uuid4()}{Path(original).suffix}"
    target.write_bytes(data)
    logger.info("Stored upload %s as %s (%d bytes)", original, target, len(data))
    return StoredFile(original_name=original, path=str(target), size=len(data), mime_type=mime_type)


def discard_upload(stored: StoredFile) -> None:
    """Remove a stored upload that no Document row refers to."""
    try:
        Path(stored.path).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove upload %s: %s", stored.path, exc)
