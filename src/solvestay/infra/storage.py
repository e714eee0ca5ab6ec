"""Bucketed object storage on the local filesystem.

Objects live at ``<root>/<bucket>/<path>`` and are served by the
``/storage`` static mount in ``app.main``.
"""

import logging
from pathlib import Path

from solvestay.app.config import get_settings

logger = logging.getLogger(__name__)

PROPERTY_IMAGES_BUCKET = "property-images"
VERIFICATION_BUCKET = "verification-documents"


class StorageError(Exception):
    """Raised when an object cannot be written or addressed."""


class LocalObjectStorage:
    """Write, address and delete objects under a root directory."""

    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        bucket_dir = (self.root / bucket).resolve()
        target = (bucket_dir / path).resolve()
        # Reject "../" escapes out of the bucket
        if bucket_dir not in target.parents:
            raise StorageError(f"Invalid object path: {path}")
        return target

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str | None = None,
        upsert: bool = False,
    ) -> str:
        """Store ``data`` and return the object path."""
        target = self._resolve(bucket, path)
        if target.exists() and not upsert:
            raise StorageError(f"Object already exists: {bucket}/{path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored %s/%s (%d bytes, %s)", bucket, path, len(data), content_type)
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/storage/{bucket}/{path}"

    def remove(self, bucket: str, paths: list[str]) -> int:
        """Delete objects; missing ones are ignored. Returns the number removed."""
        removed = 0
        for path in paths:
            target = self._resolve(bucket, path)
            if target.is_file():
                target.unlink()
                removed += 1
        return removed


def get_storage() -> LocalObjectStorage:
    """FastAPI dependency: storage rooted at the configured uploads dir."""
    settings = get_settings()
    return LocalObjectStorage(settings.uploads_dir, settings.public_base_url)
