"""
Heritage Numérique Backend — Media Storage Service
===================================================

What:  Validates, stores and cleans up uploaded media (photos, tale audio
       and video, craft videos, tree member portraits).
How:   Extension checked against a per-kind allow-list, size checked
       against settings.max_file_size, bytes written with aiofiles under a
       UUID filename.
Who:   Called by ContentService and GenealogyService for multipart routes;
       the uploads route resolves stored paths for download.

Storage Layout:
    <storage_root>/
    ├── images/   photos of contents and tree members
    ├── tales/    tale audio or video
    └── videos/   craft videos

    Public URL of a stored file: <uploads_url_prefix>/<subdir>/<uuid><ext>
    e.g. /uploads/images/3f1c...e2.jpg

Security Model:
    1. Extension allow-list per media kind (documents such as .pdf/.txt never pass)
    2. Size limit on both the Content-Length header and the real byte count
    3. UUID filenames: no user input ever reaches the file system path
    4. Download paths are resolved and must stay inside storage_root
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, NamedTuple, Optional, Tuple

import aiofiles

from heritage.config import settings
from heritage.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed Media ─────────────────────────────────────────────────────────
IMAGE = "image"
AUDIO = "audio"
VIDEO = "video"

ALLOWED_EXTENSIONS: Dict[str, FrozenSet[str]] = {
    IMAGE: frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"}),
    AUDIO: frozenset({".mp3", ".wav", ".ogg", ".m4a"}),
    VIDEO: frozenset({".mp4", ".webm", ".mov"}),
}

# ── Storage Subdirectories ────────────────────────────────────────────────
IMAGES_DIR = "images"
TALES_DIR = "tales"
VIDEOS_DIR = "videos"
SUBDIRECTORIES = (IMAGES_DIR, TALES_DIR, VIDEOS_DIR)


class MediaUpload(NamedTuple):
    """An uploaded file as read by a route, before validation."""

    filename: str
    content: bytes
    content_length: Optional[int] = None


class StoredFile:
    """Result of a successful upload."""

    __slots__ = ("absolute_path", "relative_path", "url", "size")

    def __init__(self, absolute_path: str, relative_path: str, url: str, size: int):
        self.absolute_path = absolute_path
        self.relative_path = relative_path
        self.url = url
        self.size = size

    def __repr__(self) -> str:
        return f"<StoredFile(url='{self.url}', size={self.size})>"


class FileService:
    """
    Manages the upload lifecycle: validate → store → (on failure) clean up.

    Validation order is cheapest first: extension (no I/O), then size,
    then the write itself.
    """

    def __init__(self, storage_root: Optional[str] = None, url_prefix: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
            url_prefix:   Override settings.uploads_url_prefix.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.url_prefix = (url_prefix or settings.uploads_url_prefix).rstrip("/")

    def ensure_directories(self) -> None:
        """Create the storage root and its subdirectories. Called at startup."""
        for subdir in SUBDIRECTORIES:
            (self.storage_root / subdir).mkdir(parents=True, exist_ok=True)
        logger.info("Upload storage ready at %s", self.storage_root)

    def validate_extension(self, filename: str, kinds: Iterable[str]) -> str:
        """
        Returns the normalized extension (lowercase with dot).
        Raises ValidationError when it is not allowed for any of `kinds`.
        """
        allowed = set()
        for kind in kinds:
            allowed |= ALLOWED_EXTENSIONS[kind]

        ext = Path(filename or "").suffix.lower()
        if ext not in allowed:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(allowed))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(allowed)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the Content-Length header first (may be absent or wrong),
        then the actual byte count.
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=(
                    f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty", field="file")

    def _generate_storage_path(self, subdir: str, extension: str) -> Tuple[Path, str]:
        relative_path = f"{subdir}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    def public_url(self, relative_path: str) -> str:
        return f"{self.url_prefix}/{relative_path}"

    async def store_file(self, content: bytes, subdir: str, extension: str) -> StoredFile:
        """
        Write validated bytes under <storage_root>/<subdir>/<uuid><ext>.

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        if subdir not in SUBDIRECTORIES:
            raise FileStorageError(
                message="Unknown storage location",
                context={"subdir": subdir},
            )

        absolute_path, relative_path = self._generate_storage_path(subdir, extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded file. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return StoredFile(
            absolute_path=str(absolute_path),
            relative_path=relative_path,
            url=self.public_url(relative_path),
            size=len(content),
        )

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        kinds: Iterable[str],
        subdir: str,
        content_length: Optional[int] = None,
    ) -> StoredFile:
        """
        Complete pipeline used by every multipart route.

        Example:
            stored = await file_service.validate_and_store(
                filename=photo.filename, content=data,
                kinds=(IMAGE,), subdir=IMAGES_DIR,
            )
            content.photo_url = stored.url
        """
        ext = self.validate_extension(filename, kinds)
        self.validate_size(content_length, len(content))
        return await self.store_file(content, subdir, ext)

    async def store_upload(self, upload: MediaUpload, kinds: Iterable[str], subdir: str) -> StoredFile:
        return await self.validate_and_store(
            filename=upload.filename,
            content=upload.content,
            kinds=kinds,
            subdir=subdir,
            content_length=upload.content_length,
        )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored file after a failed request. Best-effort: failures
        are logged, never raised.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    def resolve_stored_path(self, relative_path: str) -> Path:
        """
        Map a relative upload path to an absolute one for download.

        Raises:
            ValidationError: the path escapes storage_root (e.g. ../../etc/passwd)
            NotFoundError:   no such file
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)
        return full_path


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
