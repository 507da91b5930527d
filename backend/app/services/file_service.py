"""
OpsLedger Backend — Image Storage Service
===========================================

What:  Validates and stores user/employee profile images, and deletes them
       when they are replaced or their owner is removed.
Why:   Centralizes all file system operations with security checks.
How:   Validates extension, declared content type, size and sniffed MIME type,
       then writes the bytes under STORAGE_ROOT/images/ with a UUID name.
Who:   Called by auth_service, user_service and employee_service.
When:  On register, user update, employee create/update and deletes.

Security Model:
    1. Extension check:     .jpg / .jpeg / .png only
    2. Content type check:  image/jpeg or image/png as declared by the client
    3. Size check:          at most MAX_IMAGE_SIZE bytes (5MB by default)
    4. MIME sniffing:       python-magic must read the bytes as JPEG or PNG
    5. UUID filename:       no user input reaches the file system path

Stored images are addressed by a URL path (`/api/files/images/<uuid>.<ext>`)
which is what the database keeps in `image` columns.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
import magic

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded image as read from a multipart form."""

    filename: str
    content_type: Optional[str]
    content: bytes

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_CONTENT_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
}
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}

IMAGE_DIR = "images"
PUBLIC_PREFIX = "/api/files/"


class FileService:
    """
    Manages profile image validation, storage and deletion.

    Directory Structure:
        storage/
        └── images/
            ├── a1b2c3d4-....jpg
            └── e5f6g7h8-....png
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────
    def validate_extension(self, filename: str) -> str:
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message="Only .png, .jpg and .jpeg images are allowed.",
                field="image",
                context={"extension": ext},
            )
        return ext

    def validate_content_type(self, content_type: Optional[str]) -> None:
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                message="Only .png, .jpg and .jpeg images are allowed.",
                field="image",
                context={"content_type": content_type},
            )

    def validate_size(self, size: int) -> None:
        if size == 0:
            raise ValidationError(message="Image file is empty.", field="image")
        if size > settings.max_image_size:
            max_mb = settings.max_image_size / (1024 * 1024)
            raise ValidationError(
                message=f"Image is too large. Maximum size is {max_mb:.0f}MB.",
                field="image",
                context={"size": size, "max_size": settings.max_image_size},
            )

    def detect_format(self, content: bytes) -> str:
        """
        Extension matching the MIME type libmagic reads from the content.

        Raises:
            ValidationError if the content is not a PNG or JPEG image
            FileStorageError if libmagic itself fails
        """
        try:
            mime_type = magic.from_buffer(content, mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        ext = ALLOWED_CONTENT_TYPES.get(mime_type)
        if ext is None:
            raise ValidationError(
                message="File content is not a valid PNG or JPEG image.",
                field="image",
                context={"detected_type": mime_type},
            )
        return ext

    # ── Storage ───────────────────────────────────────────────────────────
    def public_url(self, relative_path: str) -> str:
        return f"{PUBLIC_PREFIX}{relative_path}"

    def resolve(self, relative_path: str) -> Path:
        """
        Absolute path of a stored file, refusing anything outside storage_root.

        Raises:
            ValidationError if the path escapes the storage directory.
        """
        candidate = (self.storage_root / relative_path).resolve()
        if self.storage_root not in candidate.parents:
            raise ValidationError(message="Invalid file path.", field="path")
        return candidate

    async def store_image(self, upload: ImageUpload) -> str:
        """
        Validate and write an uploaded image.

        Returns:
            Public URL path of the stored image.

        Raises:
            ValidationError: wrong type, empty, too large or not really an image
            FileStorageError: the write itself failed
        """
        content = upload.content
        self.validate_extension(upload.filename)
        self.validate_content_type(upload.content_type)
        self.validate_size(len(content))
        ext = self.detect_format(content)

        relative_path = f"{IMAGE_DIR}/{uuid.uuid4()}{ext}"
        absolute_path = self.storage_root / relative_path
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

        logger.info("Image stored: %s (%d bytes)", relative_path, len(content))
        return self.public_url(relative_path)

    async def delete_image(self, url: Optional[str]) -> None:
        """
        Remove a previously stored image given its public URL.

        Missing files and foreign URLs are logged and ignored; other OS
        errors are logged as warnings since the owning record is already
        updated by then.
        """
        if not url or not url.startswith(PUBLIC_PREFIX):
            return
        try:
            path = self.resolve(url[len(PUBLIC_PREFIX):])
        except ValidationError:
            logger.warning("Refusing to delete image outside storage: %s", url)
            return
        try:
            await aiofiles.os.remove(path)
            logger.info("Deleted image: %s", path.name)
        except FileNotFoundError:
            logger.debug("Image already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to delete image %s: %s", path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
