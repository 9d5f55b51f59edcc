"""
Blog Backend — Image Storage Service
======================================

What:  Validates uploaded post images and stores them on local disk.
Why:   Centralizes all file system operations for uploads.
How:   Checks extension and size, writes with a generated name, returns the
       public path under which StaticFiles serves it (/uploads/<name>).
Who:   Called by PostService when a post is created or its image replaced.

Filename scheme:
    <unix-millis>-<8 hex chars><ext>, e.g. 1700000000123-9f86d081.png
    The timestamp keeps names roughly sortable by upload time; the random
    suffix keeps two uploads in the same millisecond from colliding. No part
    of the client's filename except its extension is used, so path traversal
    through the name is impossible.

Replaced or orphaned images are not deleted by post updates or deletes.
cleanup_file() only removes files written for a request that then failed.
"""

import logging
import os
import time
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Public URL prefix that main.py mounts StaticFiles on
PUBLIC_PREFIX = "/uploads"

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


class FileService:
    """
    Manages image upload validation and storage.

    Lifecycle of an uploaded image:
        1. PostService.create_post()/update_post() → FileService.save_image()
        2. Extension check (rejects non-images before touching the disk)
        3. Size check (empty and oversized files rejected)
        4. File is written under upload_dir with a generated name
        5. Public path is returned and stored on the post
    """

    def __init__(self, upload_dir: Optional[str] = None, max_size: Optional[int] = None):
        """
        Args:
            upload_dir: Override the default storage path (used in tests).
            max_size: Override settings.max_upload_size in bytes.
        """
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.max_size = max_size or settings.max_upload_size
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with upload_dir=%s", self.upload_dir)

    def _validate_extension(self, filename: str) -> str:
        """Returns the normalized extension (lowercase, with dot)."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def _too_large(self, size: int) -> ValidationError:
        max_mb = self.max_size / (1024 * 1024)
        return ValidationError(
            message=f"Image is too large. Maximum size is {max_mb:.0f}MB.",
            field="image",
            context={"max_size": self.max_size, "actual_size": size},
        )

    def _validate_size(self, content: bytes) -> None:
        if not content:
            raise ValidationError(message="Uploaded image is empty.", field="image")

        if len(content) > self.max_size:
            raise self._too_large(len(content))

    def check_declared_size(self, size: Optional[int]) -> None:
        """
        Rejects an upload whose size is already known to exceed the limit,
        before any of it is read into memory. Unknown sizes (None) pass; the
        caller then reads at most read_limit bytes and _validate_size catches
        the overflow.
        """
        if size is not None and size > self.max_size:
            raise self._too_large(size)

    @property
    def read_limit(self) -> int:
        """One byte past the limit, enough to tell "at limit" from "over"."""
        return self.max_size + 1

    def _generate_filename(self, extension: str) -> str:
        millis = int(time.time() * 1000)
        return f"{millis}-{uuid.uuid4().hex[:8]}{extension}"

    def public_path(self, filename: str) -> str:
        return f"{PUBLIC_PREFIX}/{filename}"

    def local_path(self, public_path: str) -> Path:
        """Maps a stored /uploads/<name> path back to the file on disk."""
        return self.upload_dir / Path(public_path).name

    async def save_image(self, filename: str, content: bytes) -> str:
        """
        Validate and store an uploaded image.

        Args:
            filename: Client-supplied filename (only its extension is kept)
            content: Raw file bytes

        Returns:
            Public path, e.g. "/uploads/1700000000123-9f86d081.png"

        Raises:
            ValidationError: unsupported type, empty or oversized file
            FileStorageError: the write failed
        """
        ext = self._validate_extension(filename)
        self._validate_size(content)

        name = self._generate_filename(ext)
        absolute_path = self.upload_dir / name

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", name, len(content))
        return self.public_path(name)

    async def cleanup_file(self, public_path: str) -> None:
        """
        Best-effort removal of an image written for a request that failed.

        Never raises: a leftover file is not a user-facing error.
        """
        path = self.local_path(public_path)
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up image: %s", path.name)
            else:
                logger.debug("Cleanup: image already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up image %s: %s", path.name, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
