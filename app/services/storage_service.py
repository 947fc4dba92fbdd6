"""Storage service for post images.

Uses local disk, behind the StorageBackend protocol so an object store can be
swapped in. Files live flat under the upload root and are referenced as
``/uploads/{filename}``, which is also the path they are served from.
"""
import logging
import secrets
import time
from pathlib import Path
from typing import Protocol

from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import InvalidMediaError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"jpeg", "jpg", "png", "gif", "webp"}
URL_PREFIX = "/uploads/"
_CHUNK_SIZE = 1024 * 1024


class StorageBackend(Protocol):
    """Protocol for storage backends."""

    def save(self, field: str, data: bytes, ext: str) -> str:
        """Save file and return its reference path."""
        ...

    def delete(self, ref: str) -> bool:
        """Delete file by reference. Returns True if something was removed."""
        ...


class LocalStorage:
    """Store files on local disk: {UPLOAD_DIR}/{field}-{millis}-{random}{ext}"""

    def __init__(self, base_dir: str | Path | None = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def unique_name(field: str, ext: str) -> str:
        return f"{field}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"

    def save(self, field: str, data: bytes, ext: str) -> str:
        while True:
            filename = self.unique_name(field, ext)
            try:
                # "x" never overwrites an existing object
                with open(self.base_dir / filename, "xb") as fh:
                    fh.write(data)
            except FileExistsError:
                continue
            return f"{URL_PREFIX}{filename}"

    def path_for(self, ref: str) -> Path | None:
        """Resolve a reference to a path inside the upload root, or None."""
        if not ref or not ref.startswith(URL_PREFIX):
            return None
        filepath = (self.base_dir / ref[len(URL_PREFIX):]).resolve()
        if self.base_dir not in filepath.parents:
            return None
        return filepath

    def delete(self, ref: str) -> bool:
        filepath = self.path_for(ref)
        if filepath is None:
            logger.warning("Refusing to delete media outside upload root: %s", ref)
            return False
        try:
            filepath.unlink()
        except FileNotFoundError:
            return False
        return True


_storage: StorageBackend | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage is None:
        _storage = LocalStorage()
    return _storage


def validate_image(filename: str | None, content_type: str | None) -> str:
    """Check extension and declared content type; return the normalized extension."""
    ext = Path(filename or "").suffix.lower()
    if ext.lstrip(".") not in ALLOWED_IMAGE_TYPES:
        raise InvalidMediaError(
            "Only image files are allowed (jpeg, jpg, png, gif, webp)",
            errors=[{"field": "image", "message": f"Invalid file extension: {ext or 'none'}"}],
        )
    main_type, _, sub_type = (content_type or "").lower().partition("/")
    if main_type != "image" or sub_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidMediaError(
            "Only image files are allowed (jpeg, jpg, png, gif, webp)",
            errors=[{"field": "image", "message": f"Invalid file type: {content_type or 'none'}"}],
        )
    return ext


async def read_upload(file: UploadFile, max_size_mb: int | None = None) -> bytes:
    max_size_mb = max_size_mb or settings.MAX_UPLOAD_SIZE_MB
    limit = max_size_mb * 1024 * 1024
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(_CHUNK_SIZE):
        total += len(chunk)
        if total > limit:
            raise InvalidMediaError(
                f"File too large. Max {max_size_mb}MB",
                errors=[{"field": "image", "message": f"File exceeds {max_size_mb}MB"}],
            )
        chunks.append(chunk)
    if total == 0:
        raise InvalidMediaError("Uploaded file is empty", errors=[{"field": "image", "message": "Empty file"}])
    return b"".join(chunks)


async def store_image(file: UploadFile, field: str = "image") -> str:
    """Validate an uploaded image and store it. Returns the reference for Post.image_url."""
    ext = validate_image(file.filename, file.content_type)
    data = await read_upload(file)
    ref = get_storage().save(field, data, ext)
    logger.info("Stored %s (%d bytes)", ref, len(data))
    return ref


def remove_media(ref: str | None) -> None:
    """Best-effort removal: failures are logged, never raised."""
    if not ref:
        return
    try:
        if get_storage().delete(ref):
            logger.info("Deleted media %s", ref)
    except OSError:
        logger.warning("Failed to delete media %s", ref, exc_info=True)
