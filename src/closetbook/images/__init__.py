"""Filesystem storage for item photos.

Items only ever hold opaque references (file names); the bytes live here. Photos
are downscaled and re-encoded as JPEG on the way in to keep the library small.
"""

from __future__ import annotations

import asyncio
import io
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

LOGGER = logging.getLogger(__name__)

DEFAULT_IMAGES_DIRNAME = "images"
DEFAULT_MAX_DIMENSION = 1024
DEFAULT_QUALITY = 70


class ImageError(Exception):
    """Raised when image bytes cannot be decoded or written."""


@dataclass(frozen=True, slots=True)
class StorageInfo:
    """Summary of the image library.

    Attributes:
        count: Number of stored images.
        total_kb: Combined size in kilobytes.
    """

    count: int
    total_kb: int


class ImageStore:
    """Store, resolve and delete photos referenced by wardrobe items."""

    def __init__(
        self,
        directory: Path,
        *,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
        quality: int = DEFAULT_QUALITY,
    ) -> None:
        self._directory = Path(directory).expanduser()
        self._max_dimension = max_dimension
        self._quality = quality

    @property
    def directory(self) -> Path:
        return self._directory

    def store(self, raw: bytes) -> str:
        """Normalize ``raw`` image bytes and write them to disk.

        Args:
            raw: Encoded image in any format Pillow can read.

        Returns:
            str: Reference to keep on the owning item.

        Raises:
            ImageError: If the bytes are not a readable image or cannot be written.
        """
        try:
            with Image.open(io.BytesIO(raw)) as source:
                image = ImageOps.exif_transpose(source)
                image = image.convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageError(f"Unreadable image data: {exc}") from exc

        image.thumbnail((self._max_dimension, self._max_dimension))
        ref = f"{uuid.uuid4()}.jpg"
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            image.save(self._path(ref), format="JPEG", quality=self._quality)
        except OSError as exc:
            raise ImageError(f"Unable to save image {ref}: {exc}") from exc
        LOGGER.debug("Stored image %s (%s KB)", ref, self._path(ref).stat().st_size // 1024)
        return ref

    def resolve(self, ref: str) -> Optional[bytes]:
        """Return the stored bytes for ``ref``, or None when missing or unreadable."""
        path = self._path(ref)
        if not path.is_file():
            LOGGER.warning("Image not found: %s", ref)
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            LOGGER.warning("Failed to load image %s: %s", ref, exc)
            return None

    def delete(self, ref: str) -> None:
        """Remove ``ref`` from disk; unknown references are ignored."""
        path = self._path(ref)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.warning("Failed to delete image %s: %s", ref, exc)
            return
        LOGGER.debug("Deleted image %s", ref)

    def storage_info(self) -> StorageInfo:
        if not self._directory.is_dir():
            return StorageInfo(count=0, total_kb=0)
        files = [path for path in self._directory.iterdir() if path.is_file()]
        total = sum(path.stat().st_size for path in files)
        return StorageInfo(count=len(files), total_kb=total // 1024)

    # Async variants keep a UI/event loop responsive during disk I/O.

    async def astore(self, raw: bytes) -> str:
        return await asyncio.to_thread(self.store, raw)

    async def aresolve(self, ref: str) -> Optional[bytes]:
        return await asyncio.to_thread(self.resolve, ref)

    async def adelete(self, ref: str) -> None:
        await asyncio.to_thread(self.delete, ref)

    def _path(self, ref: str) -> Path:
        # References are bare file names; drop any directory components.
        return self._directory / Path(ref).name


__all__ = [
    "DEFAULT_IMAGES_DIRNAME",
    "ImageError",
    "ImageStore",
    "StorageInfo",
]
