"""
Heritage Numérique Backend — File Service Unit Tests
=====================================================

What:  Upload validation (extension per media kind, size), storage layout,
       cleanup and download path resolution.
How:   A FileService rooted in a temporary directory per test.

Test Strategy:
    ✅ Allowed extensions per kind, case-insensitive
    ✅ Documents (.pdf, .txt) rejected for tale media
    ✅ Size limits on the header and on the real byte count, empty files
    ✅ Files land in <subdir>/<uuid><ext> with a public URL
    ✅ Path traversal refused on download
"""

import os
from pathlib import Path

import pytest

from heritage.config import settings
from heritage.exceptions import FileStorageError, NotFoundError, ValidationError
from heritage.services.file_service import (
    AUDIO,
    IMAGE,
    IMAGES_DIR,
    TALES_DIR,
    VIDEO,
    FileService,
    MediaUpload,
)


class TestFileValidation:

    def setup_method(self):
        self.service = FileService()

    # ── Extension Validation ──────────────────────────────────────────────

    def test_image_extensions(self):
        for name in ("photo.jpg", "photo.jpeg", "photo.png", "photo.webp"):
            self.service.validate_extension(name, (IMAGE,))

    def test_extension_is_normalized(self):
        assert self.service.validate_extension("photo.JPG", (IMAGE,)) == ".jpg"
        assert self.service.validate_extension("Story.Mp3", (AUDIO, VIDEO)) == ".mp3"

    def test_tale_accepts_audio_and_video(self):
        self.service.validate_extension("story.wav", (AUDIO, VIDEO))
        self.service.validate_extension("story.mp4", (AUDIO, VIDEO))

    @pytest.mark.parametrize("name", ["story.pdf", "story.txt", "script.exe", "noextension"])
    def test_documents_rejected_for_tales(self, name):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(name, (AUDIO, VIDEO))

    def test_video_kind_rejects_audio(self):
        with pytest.raises(ValidationError):
            self.service.validate_extension("craft.mp3", (VIDEO,))

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_at_limit_passes(self):
        self.service.validate_size(None, settings.max_file_size)

    def test_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(None, settings.max_file_size + 1)

    def test_content_length_header_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(settings.max_file_size + 1, 10)

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)


class TestFileStorage:

    @pytest.mark.asyncio
    async def test_store_upload_layout(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage, url_prefix="/uploads")

        stored = await service.store_upload(
            MediaUpload(filename="portrait.JPG", content=sample_image_bytes),
            (IMAGE,),
            IMAGES_DIR,
        )

        assert stored.relative_path.startswith("images/")
        assert stored.relative_path.endswith(".jpg")
        assert stored.url == f"/uploads/{stored.relative_path}"
        assert stored.size == len(sample_image_bytes)
        assert Path(stored.absolute_path).read_bytes() == sample_image_bytes
        # user-supplied names never reach the disk
        assert "portrait" not in stored.absolute_path

    @pytest.mark.asyncio
    async def test_invalid_upload_writes_nothing(self, temp_storage):
        service = FileService(storage_root=temp_storage)

        with pytest.raises(ValidationError):
            await service.store_upload(MediaUpload(filename="tale.pdf", content=b"%PDF"), (AUDIO, VIDEO), TALES_DIR)

        assert not (Path(temp_storage) / TALES_DIR).exists()

    @pytest.mark.asyncio
    async def test_unknown_subdirectory(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(FileStorageError):
            await service.store_file(b"data", "../elsewhere", ".jpg")

    @pytest.mark.asyncio
    async def test_cleanup_removes_file(self, temp_storage, sample_audio_bytes):
        service = FileService(storage_root=temp_storage)
        stored = await service.store_file(sample_audio_bytes, TALES_DIR, ".mp3")

        await service.cleanup_file(stored.absolute_path)

        assert not os.path.exists(stored.absolute_path)

    @pytest.mark.asyncio
    async def test_cleanup_missing_file_does_not_raise(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        await service.cleanup_file(os.path.join(temp_storage, "images", "gone.jpg"))

    def test_ensure_directories(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        service.ensure_directories()
        for subdir in ("images", "tales", "videos"):
            assert (Path(temp_storage) / subdir).is_dir()


class TestStoredPathResolution:

    @pytest.mark.asyncio
    async def test_resolves_stored_file(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)
        stored = await service.store_file(sample_image_bytes, IMAGES_DIR, ".png")

        assert service.resolve_stored_path(stored.relative_path) == Path(stored.absolute_path).resolve()

    def test_path_traversal_refused(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(ValidationError, match="Invalid file path"):
            service.resolve_stored_path("../../etc/passwd")

    def test_missing_file(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(NotFoundError):
            service.resolve_stored_path("images/missing.jpg")
