"""
PlaceShare Backend - Image Storage Service
============================================

What:  Validates, stores and removes uploaded place and avatar images.
How:   Checks extension, size and content MIME type, then writes the bytes
       under `<storage_root>/images/` with a UUID filename.
Who:   Called by the place and user routes for every upload; by the place
       delete route to drop the image of a removed place.
When:  After the multipart body is received, before anything is persisted.

Validation order:
    1. Extension: .png, .jpg, .jpeg
    2. Size: at most settings.max_file_size (500KB) and not empty
    3. MIME type from the file header bytes (python-magic)
    4. UUID filename, so no user input reaches the file system path

Returned references are relative paths such as `images/<uuid>.png`; they are
stored on the row and served back under `/uploads/`.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from app.config import settings
from app.exceptions import ValidationError, FileStorageError

logger = logging.getLogger(__name__)

# MIME type → stored file extension
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpeg",
    "image/jpg": ".jpg",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}

IMAGES_DIR = "images"


class FileService:
    """
    Manages the image blob store.

    Directory Structure:
        uploads/
        └── images/
            ├── 3f2b...-9012.jpeg
            └── a1b2...-5678.png
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def _validate_extension(self, filename: str) -> str:
        """Returns the normalized extension or raises ValidationError."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def _validate_size(self, content: bytes, content_length: Optional[int]) -> None:
        """
        Rejects empty uploads and uploads above settings.max_file_size.

        The Content-Length reported by the client is checked first, then the
        actual byte count (clients can misreport the header).
        """
        max_kb = settings.max_file_size / 1000

        if not content:
            raise ValidationError(
                message="Uploaded image is empty.",
                field="image",
            )

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"Image is too large. Maximum size is {max_kb:.0f}KB.",
                field="image",
                context={"max_size": settings.max_file_size, "reported_size": content_length},
            )

        if len(content) > settings.max_file_size:
            raise ValidationError(
                message=f"Image is too large. Maximum size is {max_kb:.0f}KB.",
                field="image",
                context={"max_size": settings.max_file_size, "actual_size": len(content)},
            )

    def _detect_mime(self, content: bytes) -> str:
        # libmagic is loaded on first use only
        import magic
        return magic.from_buffer(content, mime=True)

    def _validate_mime_type(self, content: bytes) -> str:
        """
        Checks the real content type from the header bytes.

        Raises:
            ValidationError if the content is not a PNG or JPEG image
            FileStorageError if detection itself fails
        """
        try:
            mime_type = self._detect_mime(content)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Invalid mime type! The image must be a PNG or JPEG file.",
                field="image",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def _generate_storage_path(self, mime_type: str) -> Tuple[Path, str]:
        """Returns (absolute_path, relative_path) for a new UUID-named image."""
        unique_name = f"{uuid.uuid4()}{ALLOWED_MIME_TYPES[mime_type]}"
        relative_path = f"{IMAGES_DIR}/{unique_name}"
        return self.storage_root / relative_path, relative_path

    def resolve(self, relative_path: str) -> Path:
        """
        Map a stored relative path back to an absolute path inside the root.

        Raises ValidationError for paths escaping the storage root.
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="path")
        return full_path

    async def store_file(self, content: bytes, mime_type: str) -> str:
        """
        Write validated image bytes to disk.

        Returns:
            The relative path to persist as the image reference.

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(mime_type)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("Image stored: %s (%d bytes)", relative_path, len(content))
            return relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def cleanup_file(self, relative_path: str) -> None:
        """
        Remove a stored image. Best-effort: never raises.

        Used after a place is deleted and after a failed create/signup whose
        image was already written. Failures are logged only; the request
        that scheduled the cleanup has already succeeded or failed on its
        own terms.
        """
        try:
            path = self.resolve(relative_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except Exception as e:
            logger.warning("Failed to clean up file %s: %s", relative_path, str(e))

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Complete validation and storage pipeline for one uploaded image.

        Returns:
            Relative path of the stored image (the imageRef).
        """
        self._validate_extension(filename)
        self._validate_size(content, content_length)
        mime_type = self._validate_mime_type(content)
        return await self.store_file(content, mime_type)


file_service = FileService()
