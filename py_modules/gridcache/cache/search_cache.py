"""Search result cache and Steam app id -> SteamGridDB game id map.

Both are in-memory for the session only. Entries are created on first lookup
and never re-fetched. A failed lookup is not cached so the next call retries;
a lookup that finds nothing is a result and is cached.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

from ..models import GameCandidate

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], Awaitable[List[GameCandidate]]]
AnnotateFn = Callable[[List[GameCandidate]], Awaitable[None]]
LookupFn = Callable[[int], Awaitable[Optional[GameCandidate]]]


class SearchResultCache:
    """Maps a native app id to the candidates found by searching its name."""

    def __init__(self):
        self._results: Dict[int, List[GameCandidate]] = {}

    def __contains__(self, app_id: int) -> bool:
        return app_id in self._results

    def get(self, app_id: int) -> Optional[List[GameCandidate]]:
        return self._results.get(app_id)

    async def get_or_compute(self, app_id: int, compute: Callable[[], Awaitable[List[GameCandidate]]]) -> List[GameCandidate]:
        results = self._results.get(app_id)
        if results is not None:
            return results
        results = await compute()
        self._results[app_id] = results
        return results

    async def get_candidates(
        self,
        app_id: int,
        game_name: str,
        search: SearchFn,
        annotate: Optional[AnnotateFn] = None,
    ) -> List[GameCandidate]:
        """Return cached candidates for app_id, searching by name on first use.

        Args:
            app_id: Native app id the UI operates on
            game_name: Display name used as the search term
            search: Provider name search
            annotate: Optional coroutine run on fresh results before they are
                stored (page count discovery)

        Returns:
            Ordered list of candidates (may be empty)
        """
        if app_id in self._results:
            logger.debug(f"[SearchCache] Hit for {app_id}")

        async def compute() -> List[GameCandidate]:
            logger.info(f"[SearchCache] Searching SteamGridDB for '{game_name}' ({app_id})")
            results = list(await search(game_name))
            if annotate and results:
                await annotate(results)
            return results

        return await self.get_or_compute(app_id, compute)

    def snapshot(self) -> Dict[int, List[GameCandidate]]:
        return dict(self._results)

    def clear(self) -> None:
        self._results.clear()


class IdentityMap:
    """Maps a Steam app id to its resolved SteamGridDB game id."""

    def __init__(self):
        # None records a Steam app SteamGridDB does not know
        self._ids: Dict[int, Optional[str]] = {}

    def __contains__(self, app_id: int) -> bool:
        return app_id in self._ids

    def get(self, app_id: int) -> Optional[str]:
        return self._ids.get(app_id)

    async def resolve_provider_id(self, app_id: int, lookup: LookupFn) -> Optional[str]:
        """Return the cached game id, or look it up by Steam app id once.

        Only valid for Steam entries; non-Steam shortcuts have no direct lookup.
        A lookup that finds nothing returns None, and so does every later
        call for the same app until the map is cleared.
        """
        if app_id in self._ids:
            return self._ids[app_id]

        game = await lookup(app_id)
        if game is None:
            logger.info(f"[IdentityMap] No SteamGridDB game for Steam app {app_id}")
            self._ids[app_id] = None
            return None

        self._ids[app_id] = game.id
        logger.debug(f"[IdentityMap] Steam app {app_id} -> SteamGridDB game {game.id}")
        return game.id

    def clear(self) -> None:
        self._ids.clear()
