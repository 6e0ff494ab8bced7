"""Fridge photo validation."""

import io
import logging
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from chefgenius.config import settings
from chefgenius.utils.exceptions import ImageProcessingError

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")


class ImageService:
    """Service for checking uploaded fridge/pantry photos before detection."""

    @staticmethod
    def validate_image(file_content: bytes, filename: str = "") -> Tuple[bytes, str]:
        """
        Validate an uploaded photo.

        Args:
            file_content: Image file bytes
            filename: Original filename, for logging only

        Returns:
            Tuple of (image_bytes, mime_type)

        Raises:
            ImageProcessingError: If the photo is empty, too large or not a supported image
        """
        if not file_content:
            raise ImageProcessingError("Image file is empty")

        max_size = settings.max_upload_size
        if len(file_content) > max_size:
            raise ImageProcessingError(f"Image file too large (max {max_size / 1024 / 1024:.0f}MB)")

        mime_type = ImageService._detect_mime_type(file_content)
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise ImageProcessingError(f"Unsupported image format: {mime_type}. Supported: JPEG, PNG, WebP")

        logger.info("Accepted photo %s (%s, %d bytes)", filename or "<upload>", mime_type, len(file_content))
        return file_content, mime_type

    @staticmethod
    def _detect_mime_type(file_content: bytes) -> str:
        """Detect MIME type from magic bytes, falling back to Pillow."""
        if file_content.startswith(b"\xff\xd8\xff"):
            return "image/jpeg"
        if file_content.startswith(b"\x89PNG\r\n\x1a\n"):
            return "image/png"
        if file_content.startswith(b"RIFF") and b"WEBP" in file_content[:12]:
            return "image/webp"

        try:
            with Image.open(io.BytesIO(file_content)) as image:
                return Image.MIME.get(image.format or "", "application/octet-stream")
        except (UnidentifiedImageError, OSError):
            return "application/octet-stream"
