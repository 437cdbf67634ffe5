"""Tests for the photo store."""

from __future__ import annotations

import asyncio
import io
from pathlib import Path

import pytest
from PIL import Image

from closetbook.images import ImageError, ImageStore


def _png_bytes(size: tuple[int, int] = (2048, 1024), mode: str = "RGBA") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color=(200, 40, 40, 255) if mode == "RGBA" else 128).save(
        buffer, format="PNG"
    )
    return buffer.getvalue()


def test_store_downscales_and_reencodes_as_jpeg(tmp_path: Path) -> None:
    store = ImageStore(tmp_path / "images")

    ref = store.store(_png_bytes())

    assert ref.endswith(".jpg")
    raw = store.resolve(ref)
    assert raw is not None
    with Image.open(io.BytesIO(raw)) as stored:
        assert stored.format == "JPEG"
        assert stored.mode == "RGB"
        assert max(stored.size) == 1024
        assert stored.size == (1024, 512)


def test_small_images_are_not_upscaled(tmp_path: Path) -> None:
    store = ImageStore(tmp_path, max_dimension=512)

    ref = store.store(_png_bytes((100, 80)))

    with Image.open(io.BytesIO(store.resolve(ref))) as stored:
        assert stored.size == (100, 80)


def test_store_rejects_non_image_bytes(tmp_path: Path) -> None:
    store = ImageStore(tmp_path)

    with pytest.raises(ImageError):
        store.store(b"definitely not an image")


def test_resolve_missing_reference_returns_none(tmp_path: Path) -> None:
    store = ImageStore(tmp_path)

    assert store.resolve("missing.jpg") is None


def test_delete_is_idempotent(tmp_path: Path) -> None:
    store = ImageStore(tmp_path)
    ref = store.store(_png_bytes((64, 64), mode="L"))

    store.delete(ref)
    store.delete(ref)

    assert store.resolve(ref) is None


def test_references_cannot_escape_the_directory(tmp_path: Path) -> None:
    images = tmp_path / "images"
    store = ImageStore(images)
    outside = tmp_path / "secret.jpg"
    outside.write_bytes(b"x")

    assert store.resolve("../secret.jpg") is None
    store.delete("../secret.jpg")
    assert outside.exists()


def test_storage_info_counts_files(tmp_path: Path) -> None:
    store = ImageStore(tmp_path / "images")
    assert store.storage_info().count == 0

    store.store(_png_bytes((300, 300)))
    store.store(_png_bytes((300, 300)))

    info = store.storage_info()
    assert info.count == 2
    assert info.total_kb >= 0


def test_async_variants(tmp_path: Path) -> None:
    store = ImageStore(tmp_path)

    async def scenario() -> bytes | None:
        ref = await store.astore(_png_bytes((50, 50)))
        data = await store.aresolve(ref)
        await store.adelete(ref)
        return data

    assert asyncio.run(scenario()) is not None
    assert store.storage_info().count == 0
