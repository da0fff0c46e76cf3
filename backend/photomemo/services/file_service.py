"""
PhotoMemo Backend: Upload Service
=================================

What:  Validates uploaded images and stores them in the object store.
How:   Extension check, size check, content sniffing with libmagic, then a
       put under a generated key. The returned key is what clients send back
       in a post's `fileUrl`.

Key layout:
    {upload_prefix}/{owner_id}/{YYYY}/{MM}/{DD}/{uuid}{ext}

    No part of the key comes from the client's filename, so keys cannot
    collide or traverse.

Validation order (cheapest first):
    1. Extension   (no bytes read)
    2. Size        (length only)
    3. MIME type   (first bytes inspected by python-magic)
    4. Store       (full upload to S3)
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from photomemo.config import settings
from photomemo.exceptions import FileStorageError, ValidationError
from photomemo.services.attachments import join_url
from photomemo.services.storage_service import storage_service

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


class FileService:
    """Upload validation and storage for post attachments."""

    def _validate_extension(self, filename: str) -> str:
        """Returns the normalized (lowercase, dotted) extension."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def _validate_size(self, content: bytes, content_length: Optional[int]) -> None:
        max_mb = settings.max_file_size / (1024 * 1024)

        if not content:
            raise ValidationError(message="The uploaded file is empty.", field="file")

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File is too large. Maximum size is {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if len(content) > settings.max_file_size:
            raise ValidationError(
                message=(
                    f"File is too large ({len(content) / (1024 * 1024):.1f}MB). "
                    f"Maximum size is {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )

    def _detect_mime_type(self, content: bytes) -> str:
        """Content type from the file's magic bytes."""
        import magic

        try:
            return magic.from_buffer(content[:2048], mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

    def _validate_mime_type(self, content: bytes) -> str:
        mime_type = self._detect_mime_type(content)
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a PNG, JPEG, GIF or WebP image."
                ),
                field="file",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def _generate_key(self, owner_id: uuid.UUID, extension: str) -> str:
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        prefix = settings.upload_prefix.strip("/")
        return f"{prefix}/{owner_id}/{date_dir}/{uuid.uuid4()}{extension}"

    async def validate_and_store(
        self,
        owner_id: uuid.UUID,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Full upload pipeline.

        Returns:
            (storage_key, public_url)

        Raises:
            ValidationError:  bad extension, empty, too large, or not an image (→ 400)
            FileStorageError: type sniffing or the S3 put failed (→ 500)
        """
        ext = self._validate_extension(filename)
        self._validate_size(content, content_length)
        mime_type = self._validate_mime_type(content)

        key = self._generate_key(owner_id, ext)
        await storage_service.put_object(key, content, mime_type)

        logger.info("Upload stored for %s: %s (%s)", owner_id, key, mime_type)
        return key, join_url(settings.storage_base_url, key)


file_service = FileService()
