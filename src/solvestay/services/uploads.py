"""Validation and storage of property images and verification documents."""

import logging
import time

from fastapi import UploadFile

from solvestay.app.errors import ApiError
from solvestay.infra.storage import (
    PROPERTY_IMAGES_BUCKET,
    VERIFICATION_BUCKET,
    LocalObjectStorage,
    StorageError,
)

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/x-exr",
    "image/exr",
}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "gif", "exr"}

DOCUMENT_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "application/pdf"}

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/x-exr": "exr",
    "image/exr": "exr",
    "application/pdf": "pdf",
}

MB = 1024 * 1024


def file_extension(filename: str | None, default: str = "") -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return default


def upload_extension(filename: str | None, content_type: str | None, default: str = "") -> str:
    """Extension from the file name, else the one implied by the MIME type."""
    return file_extension(filename) or MIME_EXTENSIONS.get(content_type or "", default)


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def validate_image(content_type: str | None, filename: str | None, size: int, max_mb: int) -> None:
    ext = upload_extension(filename, content_type)
    if content_type not in IMAGE_MIME_TYPES and ext not in IMAGE_EXTENSIONS:
        raise ApiError(400, "Invalid file type. Allowed: JPEG, PNG, WebP, GIF, EXR")
    if size > max_mb * MB:
        raise ApiError(400, f"File too large. Maximum {max_mb}MB allowed")
    if not ext:
        raise ApiError(400, "Invalid file name")


def validate_document(content_type: str | None, size: int, max_mb: int) -> None:
    if content_type not in DOCUMENT_MIME_TYPES:
        raise ApiError(400, "Invalid file type. Allowed: JPEG, PNG, WebP, PDF")
    if size > max_mb * MB:
        raise ApiError(400, f"File too large. Maximum {max_mb}MB allowed")


async def store_property_image(
    storage: LocalObjectStorage,
    user_id: str,
    file: UploadFile,
    property_id: str | None,
    max_mb: int,
) -> dict:
    data = await file.read()
    validate_image(file.content_type, file.filename, len(data), max_mb)

    ext = upload_extension(file.filename, file.content_type)
    path = f"{user_id}/{property_id or 'temp'}/{_timestamp_ms()}.{ext}"
    try:
        storage.upload(PROPERTY_IMAGES_BUCKET, path, data, content_type=file.content_type)
    except StorageError as e:
        logger.error("Image upload failed for %s: %s", user_id, e)
        raise ApiError(500, "Failed to upload file") from e

    return {
        "success": True,
        "url": storage.public_url(PROPERTY_IMAGES_BUCKET, path),
        "path": path,
    }


def delete_property_image(storage: LocalObjectStorage, user_id: str, path: str) -> None:
    # Callers may only delete under their own prefix
    if not path.startswith(f"{user_id}/"):
        raise ApiError(403, "Unauthorized")
    try:
        storage.remove(PROPERTY_IMAGES_BUCKET, [path])
    except StorageError as e:
        raise ApiError(400, "Invalid path") from e


async def store_verification_document(
    storage: LocalObjectStorage, user_id: str, file: UploadFile, max_mb: int
) -> tuple[str, str]:
    """Store a document and return ``(path, public_url)``."""
    data = await file.read()
    validate_document(file.content_type, len(data), max_mb)

    ext = upload_extension(file.filename, file.content_type, default="pdf")
    path = f"verification/{user_id}/{_timestamp_ms()}.{ext}"
    try:
        storage.upload(VERIFICATION_BUCKET, path, data, content_type=file.content_type)
    except StorageError as e:
        logger.error("Verification upload failed for %s: %s", user_id, e)
        raise ApiError(500, "Failed to upload document") from e

    return path, storage.public_url(VERIFICATION_BUCKET, path)
