"""
OpsLedger Backend — File Service Unit Tests
=============================================

What:  Tests for FileService validation (extension, content type, size,
       MIME sniffing), image storage and deletion.
Why:   Image uploads are the only place user bytes reach the file system.
How:   Each test gets a FileService rooted in a temporary directory.

Test Strategy:
    ✅ Allowed extensions (.jpg, .jpeg, .png), case-insensitive
    ✅ Rejected extensions and content types
    ✅ Size limits (empty, at limit, over limit)
    ✅ MIME sniffing with python-magic (content must really be PNG/JPEG)
    ✅ Stored files get UUID names and a public URL
    ✅ Path traversal is refused
"""

from pathlib import Path

import magic
import pytest

from app.config import settings
from app.exceptions import FileStorageError, ValidationError
from app.services.file_service import PUBLIC_PREFIX, FileService, ImageUpload


class TestFileValidation:
    """Tests for the synchronous validation helpers."""

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    # ── Extension Validation ──────────────────────────────────────────────

    def test_validate_extension_allowed(self):
        """JPG, JPEG and PNG files pass and the lowercase suffix is returned."""
        assert self.service.validate_extension("photo.jpg") == ".jpg"
        assert self.service.validate_extension("photo.jpeg") == ".jpeg"
        assert self.service.validate_extension("photo.png") == ".png"

    def test_validate_extension_uppercase(self):
        """Extension check is case-insensitive."""
        assert self.service.validate_extension("photo.JPG") == ".jpg"
        assert self.service.validate_extension("photo.Png") == ".png"

    @pytest.mark.parametrize("filename", ["animation.gif", "doc.pdf", "tool.exe", "noextension"])
    def test_validate_extension_rejected(self, filename):
        with pytest.raises(ValidationError, match="Only .png, .jpg and .jpeg"):
            self.service.validate_extension(filename)

    def test_validate_extension_double_extension(self):
        """Only the final suffix counts."""
        with pytest.raises(ValidationError):
            self.service.validate_extension("photo.jpg.exe")

    # ── Content Type Validation ───────────────────────────────────────────

    def test_validate_content_type_allowed(self):
        self.service.validate_content_type("image/png")
        self.service.validate_content_type("image/jpeg")

    @pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", None])
    def test_validate_content_type_rejected(self, content_type):
        with pytest.raises(ValidationError, match="Only .png, .jpg and .jpeg"):
            self.service.validate_content_type(content_type)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_validate_size_at_limit(self):
        """A file exactly at the limit is accepted."""
        self.service.validate_size(settings.max_image_size)

    def test_validate_size_over_limit(self):
        with pytest.raises(ValidationError, match="too large"):
            self.service.validate_size(settings.max_image_size + 1)

    def test_validate_size_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0)

    # ── MIME Sniffing ─────────────────────────────────────────────────────

    def test_detect_format(self, sample_jpeg_bytes, sample_png_bytes):
        assert self.service.detect_format(sample_jpeg_bytes) == ".jpg"
        assert self.service.detect_format(sample_png_bytes) == ".png"

    def test_detect_format_rejects_disguised_file(self):
        """A text file renamed to .png is still not an image."""
        with pytest.raises(ValidationError, match="not a valid PNG or JPEG"):
            self.service.detect_format(b"hello, world")

    def test_detect_format_rejects_other_images(self):
        """A GIF is an image, but not one of the accepted formats."""
        with pytest.raises(ValidationError) as exc_info:
            self.service.detect_format(b"GIF89a\x01\x00\x01\x00\x80\x00\x00" + b"\x00" * 16)
        assert exc_info.value.context["detected_type"] == "image/gif"

    def test_detect_format_uses_libmagic(self, monkeypatch, sample_png_bytes):
        """The decision follows the MIME type libmagic reports, not the leading bytes."""
        monkeypatch.setattr(magic, "from_buffer", lambda content, mime: "text/html")
        with pytest.raises(ValidationError, match="not a valid PNG or JPEG"):
            self.service.detect_format(sample_png_bytes)

    def test_detect_format_libmagic_failure(self, monkeypatch, sample_png_bytes):
        def broken(content, mime):
            raise magic.MagicException("no magic database")

        monkeypatch.setattr(magic, "from_buffer", broken)
        with pytest.raises(FileStorageError, match="Could not verify file type"):
            self.service.detect_format(sample_png_bytes)


class TestFileStorage:
    """Tests for storing, resolving and deleting images."""

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.storage = Path(temp_storage)
        self.service = FileService(storage_root=temp_storage)

    async def test_store_image_writes_uuid_named_file(self, sample_png_bytes):
        url = await self.service.store_image(
            ImageUpload(filename="../../evil name.png", content_type="image/png", content=sample_png_bytes)
        )
        assert url.startswith(f"{PUBLIC_PREFIX}images/")
        assert url.endswith(".png")
        assert "evil" not in url

        stored = self.service.resolve(url[len(PUBLIC_PREFIX):])
        assert stored.read_bytes() == sample_png_bytes

    async def test_store_image_extension_follows_signature(self, sample_jpeg_bytes):
        """A .jpeg upload is stored with the canonical .jpg suffix."""
        url = await self.service.store_image(
            ImageUpload(filename="me.jpeg", content_type="image/jpeg", content=sample_jpeg_bytes)
        )
        assert url.endswith(".jpg")

    async def test_store_image_rejects_mismatched_content(self):
        with pytest.raises(ValidationError):
            await self.service.store_image(
                ImageUpload(filename="me.png", content_type="image/png", content=b"GIF89a....")
            )
        assert not (self.storage / "images").exists() or not any((self.storage / "images").iterdir())

    async def test_delete_image_removes_file(self, sample_png_bytes):
        url = await self.service.store_image(
            ImageUpload(filename="me.png", content_type="image/png", content=sample_png_bytes)
        )
        path = self.service.resolve(url[len(PUBLIC_PREFIX):])
        assert path.exists()

        await self.service.delete_image(url)
        assert not path.exists()

    async def test_delete_image_missing_or_foreign_is_ignored(self):
        """Unknown files, foreign URLs and None do not raise."""
        await self.service.delete_image(f"{PUBLIC_PREFIX}images/does-not-exist.png")
        await self.service.delete_image("https://example.com/avatar.png")
        await self.service.delete_image(None)

    async def test_delete_image_outside_storage_is_refused(self, tmp_path):
        outside = tmp_path / "keep.txt"
        outside.write_text("keep")
        await self.service.delete_image(f"{PUBLIC_PREFIX}../keep.txt")
        assert outside.exists()

    def test_resolve_rejects_traversal(self):
        with pytest.raises(ValidationError, match="Invalid file path"):
            self.service.resolve("../../etc/passwd")
