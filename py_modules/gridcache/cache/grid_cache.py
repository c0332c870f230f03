"""In-memory cache of image lists keyed by game, category and page.

Only completed fetches are stored. Two overlapping misses for the same key
both fetch and the later write wins; results are identical so this is only
wasteful.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Union

from ..models import ArtCategory, ImageRecord

logger = logging.getLogger(__name__)

GameKey = Union[int, str]
FetchFn = Callable[[], Awaitable[List[ImageRecord]]]


class GridResultCache:
    """game key -> category -> page -> images"""

    def __init__(self, name: str = "grids"):
        self.name = name
        self._cache: Dict[str, Dict[ArtCategory, Dict[int, List[ImageRecord]]]] = {}

    @staticmethod
    def _key(key: GameKey) -> str:
        return str(key)

    def peek(self, key: GameKey, category: ArtCategory, page: int = 0) -> Optional[List[ImageRecord]]:
        """Return the cached page without fetching."""
        return self._cache.get(self._key(key), {}).get(category, {}).get(page)

    def pages(self, key: GameKey, category: ArtCategory) -> List[int]:
        """Page numbers already cached for a game/category."""
        return sorted(self._cache.get(self._key(key), {}).get(category, {}))

    def __contains__(self, item) -> bool:
        key, category, page = item
        return self.peek(key, category, page) is not None

    async def get_or_compute(self, key: GameKey, category: ArtCategory, page: int, fetch: FetchFn) -> List[ImageRecord]:
        cached = self.peek(key, category, page)
        if cached is not None:
            logger.debug(f"[GridCache:{self.name}] Using in memory cache for {key}'s {category.value} page {page}.")
            return cached

        logger.info(f"[GridCache:{self.name}] Need to fetch {category.value} page {page} for {key}.")
        images = list(await fetch())
        # Levels are created only after the fetch succeeded
        self._cache.setdefault(self._key(key), {}).setdefault(category, {})[page] = images
        return images

    async def get_page(self, key: GameKey, category: ArtCategory, page: int, fetch: FetchFn) -> List[ImageRecord]:
        """Return images for (key, category, page), calling fetch once on a miss."""
        return await self.get_or_compute(key, category, page, fetch)

    def clear(self) -> None:
        self._cache.clear()
