"""Upload storage: validate, store (local disk or S3), return a stable URL."""

import logging
import os
import uuid
from os import SEEK_END
from typing import BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from helix.core.config import settings
from helix.core.errors import UnexpectedError, ValidationError
from helix.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

ALLOWED_EXTENSIONS = {"jpeg", "jpg", "png", "webp", "pdf"}
ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "application/pdf",
}
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB


# =============================================================================
# Storage Backend
# =============================================================================

def _get_s3_client():
    """Get boto3 S3 client."""
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
    )


def _get_local_storage_path() -> str:
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


# =============================================================================
# File Operations
# =============================================================================

def get_file_size(file: BinaryIO) -> int:
    """Size of a seekable stream without reading it into memory."""
    original_pos = file.tell()
    try:
        file.seek(0, SEEK_END)
        return file.tell()
    finally:
        file.seek(original_pos)


def validate_file(filename: str, content_type: str | None, file_size: int) -> None:
    """
    Validate file against allowlists and size limits.

    Raises:
        ValidationError: listing every violation found
    """
    errors = []
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in ALLOWED_EXTENSIONS:
        errors.append(f"File extension '.{ext}' not allowed")
    if (content_type or "") not in ALLOWED_MIME_TYPES:
        errors.append(f"Content type '{content_type}' not allowed")
    if file_size > MAX_FILE_SIZE_BYTES:
        max_mb = MAX_FILE_SIZE_BYTES / (1024 * 1024)
        errors.append(f"File size exceeds {max_mb:.0f} MB limit")
    if errors:
        raise ValidationError("Invalid file upload", errors=errors)


def build_storage_key(folder: str, filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{folder}/{uuid.uuid4().hex}.{ext}"


def store_file(storage_key: str, file: BinaryIO, content_type: str | None = None) -> str:
    """Store file to configured backend and return its retrieval URL."""
    file.seek(0)
    if settings.STORAGE_BACKEND == "s3":
        extra_args = {"ContentType": content_type} if content_type else None
        try:
            _get_s3_client().upload_fileobj(
                file, settings.S3_BUCKET, storage_key, ExtraArgs=extra_args
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 upload failed for key %s: %s", storage_key, exc)
            raise UnexpectedError("File upload failed")
        return f"https://{settings.S3_BUCKET}.s3.{settings.S3_REGION}.amazonaws.com/{storage_key}"

    path = os.path.join(_get_local_storage_path(), storage_key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(file.read())
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/uploads/{storage_key}"


def store_upload(folder: str, filename: str, content_type: str | None, file: BinaryIO) -> str:
    """Validate then store an uploaded file; returns a stable URL."""
    validate_file(filename or "", content_type, get_file_size(file))
    storage_key = build_storage_key(folder, filename or "")
    url = store_file(storage_key, file, content_type)
    logger.info("Stored upload", extra=build_log_context(storage_key=storage_key))
    return url
