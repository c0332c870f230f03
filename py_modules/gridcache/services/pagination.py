"""
Result page count discovery for search candidates.

Walks pages 0, 1, 2, ... of each candidate through the provider grid cache
until a page comes back empty or the fetch fails. Pages fetched here stay
cached, so running discovery again costs no requests.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from ..cache.grid_cache import GridResultCache
from ..models import ArtCategory, GameCandidate, ImageFilters, ImageRecord

logger = logging.getLogger(__name__)

# Used instead of discovery until the provider reports page counts itself
PLACEHOLDER_PAGE_COUNT = 3

PageFetchFn = Callable[[str, ArtCategory, int, Optional[ImageFilters]], Awaitable[List[ImageRecord]]]


class PaginationDiscoverer:
    """Annotates candidates with how many non-empty result pages they have."""

    def __init__(self, grid_cache: GridResultCache, fetch_page: PageFetchFn):
        """Initialize the discoverer.

        Args:
            grid_cache: Provider grid cache pages are read from and stored in
            fetch_page: Gateway call for one page (game_id, category, page, filters)
        """
        self.grid_cache = grid_cache
        self.fetch_page = fetch_page

    async def count_pages(self, game_id: str, category: ArtCategory, filters: Optional[ImageFilters] = None) -> int:
        num_pages = 0
        while True:
            page = num_pages
            try:
                grids = await self.grid_cache.get_page(
                    game_id, category, page,
                    lambda: self.fetch_page(game_id, category, page, filters),
                )
            except Exception as e:
                logger.warning(f"[Pagination] Stopped at page {page} for game {game_id}: {e}")
                break
            if not grids:
                break
            num_pages += 1
        return num_pages

    async def discover_page_counts(
        self,
        candidates: List[GameCandidate],
        category: ArtCategory,
        filters: Optional[ImageFilters] = None,
    ) -> List[GameCandidate]:
        """Set num_result_pages on every candidate. Candidates are walked concurrently."""
        logger.info(f"[Pagination] Determining page counts for {len(candidates)} results...")

        async def annotate(game: GameCandidate) -> None:
            game.num_result_pages = await self.count_pages(game.id, category, filters)
            logger.info(f"[Pagination] Found {game.num_result_pages} pages for {game.name}.")

        await asyncio.gather(*(annotate(game) for game in candidates))
        return candidates


def apply_placeholder(candidates: List[GameCandidate], count: int = PLACEHOLDER_PAGE_COUNT) -> List[GameCandidate]:
    """Give every candidate a fixed page count without asking the provider."""
    for game in candidates:
        game.num_result_pages = count
    return candidates
