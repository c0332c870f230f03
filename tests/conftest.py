from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, Mock
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
# The package lives under py_modules, like the plugin backend
sys.path.insert(0, str(ROOT / "py_modules"))

from gridcache.models import ArtCategory, GameCandidate, ImageRecord  # noqa: E402
from gridcache.settings import Settings  # noqa: E402
from gridcache.state import AppState  # noqa: E402


IMAGE_URL = "https://cdn2.steamgriddb.com/grid/a.png"


@pytest.fixture
def foo_image():
    return ImageRecord(id="img1", url=IMAGE_URL, category=ArtCategory.CAPSULE)


@pytest.fixture
def mock_gateway(foo_image):
    """Gateway double that knows a single game "Foo" (SteamGridDB id 5)."""
    return Mock(
        search_game=AsyncMock(return_value=[GameCandidate(id="5", name="Foo")]),
        get_game_by_steam_appid=AsyncMock(return_value=GameCandidate(id="5", name="Foo")),
        get_images_by_game_id=AsyncMock(return_value=[foo_image]),
        get_images_by_steam_appid=AsyncMock(return_value=[foo_image]),
        download_bytes=AsyncMock(return_value=b"\x89PNG fake image"),
        close=AsyncMock(),
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(cache_dir=str(tmp_path / "grids"))


@pytest.fixture
def app_state():
    state = AppState()
    state.api_key.set("test-key")
    return state
