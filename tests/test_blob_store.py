"""
Tests for the on-disk image cache.
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from gridcache.cache.blob_store import DiskBlobStore
from gridcache.errors import DownloadError, GatewayError
from gridcache.models import ArtCategory
from gridcache.state import AppState


URL = "https://cdn2.steamgriddb.com/grid/abc123.png"


@pytest.fixture
def download():
    return AsyncMock(return_value=b"image-bytes")


@pytest.fixture
def state():
    return AppState()


@pytest.fixture
def blob_store(tmp_path, download, state):
    return DiskBlobStore(tmp_path / "grids", download, state)


@pytest.mark.asyncio
async def test_ensure_layout_creates_category_dirs(blob_store):
    await blob_store.ensure_layout()

    assert blob_store.root.is_dir()
    for category in ArtCategory:
        assert (blob_store.root / category.value).is_dir()


@pytest.mark.asyncio
async def test_ensure_layout_is_idempotent(blob_store):
    await blob_store.ensure_layout()
    (blob_store.root / "Hero" / "kept.png").write_bytes(b"x")

    await blob_store.ensure_layout()

    assert (blob_store.root / "Hero" / "kept.png").read_bytes() == b"x"


def test_resolve_local_path_is_deterministic(blob_store):
    first = blob_store.resolve_local_path(ArtCategory.LOGO, URL)
    second = blob_store.resolve_local_path(ArtCategory.LOGO, URL)

    assert first == second
    assert first == blob_store.root / "Logo" / "abc123.png"


def test_resolve_local_path_same_basename_collides(blob_store):
    a = blob_store.resolve_local_path(ArtCategory.HERO, "https://cdn-a.example/hero/img.png")
    b = blob_store.resolve_local_path(ArtCategory.HERO, "https://cdn-b.example/other/img.png")

    assert a == b


def test_resolve_local_path_separates_categories(blob_store):
    assert blob_store.resolve_local_path(ArtCategory.HERO, URL) != blob_store.resolve_local_path(ArtCategory.ICON, URL)


@pytest.mark.asyncio
async def test_get_or_fetch_downloads_and_writes(blob_store, download):
    await blob_store.ensure_layout()

    path = await blob_store.get_or_fetch(100, URL, ArtCategory.CAPSULE)

    assert path.read_bytes() == b"image-bytes"
    download.assert_awaited_once_with(URL)


@pytest.mark.asyncio
async def test_get_or_fetch_existing_file_skips_download(blob_store, download):
    await blob_store.ensure_layout()
    existing = blob_store.resolve_local_path(ArtCategory.CAPSULE, URL)
    existing.write_bytes(b"already here")

    path = await blob_store.get_or_fetch(100, URL, ArtCategory.CAPSULE)

    assert path == existing
    download.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_or_fetch_failure_raises_and_clears_signal(blob_store, download, state):
    await blob_store.ensure_layout()
    download.side_effect = GatewayError("Failed to download image: HTTP 500")
    seen = []
    state.downloading_app_ids.subscribe(lambda ids: seen.append(set(ids)))

    with pytest.raises(DownloadError):
        await blob_store.get_or_fetch(100, URL, ArtCategory.CAPSULE)

    assert {100} in seen
    assert not state.is_downloading(100)
    assert not blob_store.resolve_local_path(ArtCategory.CAPSULE, URL).exists()
    assert list((blob_store.root / "Capsule").iterdir()) == []


@pytest.mark.asyncio
async def test_get_or_fetch_empty_body_is_a_failure(blob_store, download):
    await blob_store.ensure_layout()
    download.return_value = b""

    with pytest.raises(DownloadError):
        await blob_store.get_or_fetch(100, URL, ArtCategory.CAPSULE)

    assert blob_store.get_cached_path(ArtCategory.CAPSULE, URL) is None


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_download(tmp_path, state):
    release = asyncio.Event()
    calls = []

    async def slow_download(url):
        calls.append(url)
        await release.wait()
        return b"data"

    store = DiskBlobStore(tmp_path / "grids", slow_download, state)
    await store.ensure_layout()

    first = asyncio.ensure_future(store.get_or_fetch(1, URL, ArtCategory.HERO))
    second = asyncio.ensure_future(store.get_or_fetch(2, URL, ArtCategory.HERO))
    await asyncio.sleep(0)
    assert store.in_flight_count() == 1
    release.set()

    assert await first == await second
    assert calls == [URL]
    assert store.in_flight_count() == 0


@pytest.mark.asyncio
async def test_failed_download_with_cancelled_waiter_is_collected(tmp_path, state):
    release = asyncio.Event()

    async def failing_download(url):
        await release.wait()
        raise GatewayError("Failed to download image: HTTP 500", url)

    store = DiskBlobStore(tmp_path / "grids", failing_download, state)
    await store.ensure_layout()

    waiter = asyncio.ensure_future(store.get_or_fetch(1, URL, ArtCategory.HERO))
    await asyncio.sleep(0)
    task = store._in_flight[store.resolve_local_path(ArtCategory.HERO, URL)]

    waiter.cancel()
    await asyncio.sleep(0)
    release.set()
    await asyncio.wait([task])
    await asyncio.sleep(0)

    assert waiter.cancelled()
    # Exception already retrieved, so asyncio will not log it as unhandled
    assert task._log_traceback is False
    assert store.in_flight_count() == 0
    assert not state.is_downloading(1)


@pytest.mark.asyncio
async def test_invalidate_removes_root_and_layout_recreates(blob_store):
    await blob_store.ensure_layout()
    blob_store.resolve_local_path(ArtCategory.ICON, URL).write_bytes(b"x")

    await blob_store.invalidate()
    assert not blob_store.root.exists()

    await blob_store.ensure_layout()
    assert sorted(p.name for p in blob_store.root.iterdir()) == sorted(c.value for c in ArtCategory)


@pytest.mark.asyncio
async def test_invalidate_missing_root_is_noop(blob_store):
    await blob_store.invalidate()
    assert not blob_store.root.exists()
