"""
Tests for result page count discovery.
"""
from unittest.mock import AsyncMock

import pytest

from gridcache.cache.grid_cache import GridResultCache
from gridcache.errors import GatewayError
from gridcache.models import ArtCategory, GameCandidate, ImageRecord
from gridcache.services.pagination import PLACEHOLDER_PAGE_COUNT, PaginationDiscoverer, apply_placeholder


def pages_of(counts):
    """fetch_page double: game id -> number of non-empty pages."""
    async def fetch_page(game_id, category, page, filters=None):
        if page < counts[game_id]:
            return [ImageRecord(id=f"{game_id}-{page}", url=f"https://cdn/{game_id}/{page}.png", category=category)]
        return []
    return AsyncMock(side_effect=fetch_page)


@pytest.mark.asyncio
async def test_counts_non_empty_pages_with_n_plus_one_fetches():
    fetch_page = pages_of({"5": 3})
    discoverer = PaginationDiscoverer(GridResultCache(), fetch_page)
    candidates = [GameCandidate(id="5", name="Foo")]

    await discoverer.discover_page_counts(candidates, ArtCategory.CAPSULE)

    assert candidates[0].num_result_pages == 3
    assert fetch_page.await_count == 4
    assert [c.args[2] for c in fetch_page.await_args_list] == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_annotates_every_candidate():
    fetch_page = pages_of({"1": 0, "2": 2})
    discoverer = PaginationDiscoverer(GridResultCache(), fetch_page)
    candidates = [GameCandidate(id="1", name="Baz"), GameCandidate(id="2", name="Bar")]

    result = await discoverer.discover_page_counts(candidates, ArtCategory.HERO)

    assert result is candidates
    assert [g.num_result_pages for g in candidates] == [0, 2]


@pytest.mark.asyncio
async def test_second_discovery_hits_cache():
    grid_cache = GridResultCache()
    fetch_page = pages_of({"5": 2})
    discoverer = PaginationDiscoverer(grid_cache, fetch_page)

    await discoverer.discover_page_counts([GameCandidate(id="5", name="Foo")], ArtCategory.LOGO)
    again = [GameCandidate(id="5", name="Foo")]
    await discoverer.discover_page_counts(again, ArtCategory.LOGO)

    assert again[0].num_result_pages == 2
    assert fetch_page.await_count == 3
    assert grid_cache.pages("5", ArtCategory.LOGO) == [0, 1, 2]


@pytest.mark.asyncio
async def test_error_ends_walk_like_an_empty_page():
    async def fetch_page(game_id, category, page, filters=None):
        if page == 0:
            return [ImageRecord(id="a", url="https://cdn/a.png", category=category)]
        raise GatewayError("HTTP 500")

    discoverer = PaginationDiscoverer(GridResultCache(), AsyncMock(side_effect=fetch_page))
    candidates = [GameCandidate(id="5", name="Foo")]

    await discoverer.discover_page_counts(candidates, ArtCategory.CAPSULE)

    assert candidates[0].num_result_pages == 1


def test_apply_placeholder_sets_fixed_count():
    candidates = [GameCandidate(id="1", name="Baz"), GameCandidate(id="2", name="Bar")]

    apply_placeholder(candidates)

    assert [g.num_result_pages for g in candidates] == [PLACEHOLDER_PAGE_COUNT] * 2
    assert PLACEHOLDER_PAGE_COUNT == 3
