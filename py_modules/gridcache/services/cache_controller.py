"""
CacheController - Resolves library entries to SteamGridDB artwork.

Responsibilities:
- Resolve a Steam app id / shortcut name to a SteamGridDB game
- Serve result pages from the in-memory caches, fetching only on a miss
- Download images into the disk cache
- Track the SteamGridDB client as the API key changes
- Drop stale results when the UI selection moved on mid-request
- Clear caches on shutdown
"""

import logging
from typing import Callable, List, Optional

from ..cache.blob_store import DiskBlobStore
from ..cache.grid_cache import GridResultCache
from ..cache.search_cache import IdentityMap, SearchResultCache
from ..errors import ClientUnavailableError, OfflineError
from ..gateway.base import ArtGateway
from ..gateway.steamgriddb import SteamGridDBGateway
from ..models import ArtCategory, GameCandidate, ImageFilters, ImageRecord, Platform
from ..settings import Settings
from ..state import AppState, Unsubscriber
from ..utils.paths import get_grids_cache_dir
from .pagination import PaginationDiscoverer, apply_placeholder

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[str], ArtGateway]


def default_gateway_factory(settings: Settings) -> GatewayFactory:
    def factory(api_key: str) -> ArtGateway:
        return SteamGridDBGateway(api_key, timeout=settings.request_timeout)
    return factory


def choose_candidate(
    candidates: List[GameCandidate],
    selected_id: Optional[str] = None,
    preferred_id: Optional[str] = None,
    name: Optional[str] = None,
) -> Optional[GameCandidate]:
    """Pick the candidate to show artwork for.

    An explicit selection wins, then the preferred id (Steam lookup), then an
    exact name match; otherwise the first candidate. None if there are no
    candidates at all.
    """
    if selected_id is not None:
        wanted, by = str(selected_id), "id"
    elif preferred_id is not None:
        wanted, by = str(preferred_id), "id"
    elif name is not None:
        wanted, by = name, "name"
    else:
        wanted, by = None, None

    if wanted is not None:
        for game in candidates:
            if getattr(game, by) == wanted:
                return game

    return candidates[0] if candidates else None


class CacheController:
    """Caching front for SteamGridDB requests."""

    def __init__(
        self,
        state: AppState,
        settings: Optional[Settings] = None,
        gateway_factory: Optional[GatewayFactory] = None,
    ):
        """Initialize CacheController.

        Args:
            state: Shared observable state
            settings: User settings (defaults if omitted)
            gateway_factory: Builds an ArtGateway from an API key
        """
        self.state = state
        self.settings = settings or Settings()
        self.gateway_factory = gateway_factory or default_gateway_factory(self.settings)
        self.gateway: Optional[ArtGateway] = None
        self._api_key: Optional[str] = None
        self._retired_gateways: List[ArtGateway] = []
        self._unsubscribers: List[Unsubscriber] = []

        self.search_cache = SearchResultCache()
        self.identity_map = IdentityMap()
        # Steam app id -> category -> page 0
        self.steam_grids = GridResultCache("steam")
        # SteamGridDB game id -> category -> page
        self.grids = GridResultCache("sgdb")
        self.pagination = PaginationDiscoverer(self.grids, self._fetch_page)
        self.blob_store = DiskBlobStore(
            get_grids_cache_dir(self.settings.cache_dir), self._download, state
        )

    async def init(self) -> None:
        """Create the disk layout and start following the API key."""
        logger.info("Initializing CacheController...")
        await self.blob_store.ensure_layout()

        if self.settings.steamgriddb_api_key and not self.state.api_key.get():
            self.state.api_key.set(self.settings.steamgriddb_api_key)

        self._unsubscribers.append(self.state.api_key.subscribe(self._on_api_key))
        logger.info("Initialized CacheController.")

    def _on_api_key(self, key: str) -> None:
        if key == self._api_key:
            return
        if self.gateway is not None:
            self._retired_gateways.append(self.gateway)
        if key:
            self.gateway = self.gateway_factory(key)
            self._api_key = key
        else:
            self.gateway = None
            self._api_key = None
            logger.warning("No SteamGridDB API key set; only cached artwork is available")

    def _require_gateway(self) -> ArtGateway:
        if not self.state.online.get():
            raise OfflineError("Artwork is not cached and the app is offline")
        if self.gateway is None:
            raise ClientUnavailableError("No SteamGridDB API key configured")
        return self.gateway

    async def _search(self, name: str) -> List[GameCandidate]:
        return await self._require_gateway().search_game(name)

    async def _lookup(self, app_id: int) -> Optional[GameCandidate]:
        return await self._require_gateway().get_game_by_steam_appid(app_id)

    async def _fetch_page(
        self, game_id: str, category: ArtCategory, page: int, filters: Optional[ImageFilters] = None
    ) -> List[ImageRecord]:
        return await self._require_gateway().get_images_by_game_id(game_id, category, page, filters)

    async def _download(self, url: str) -> bytes:
        return await self._require_gateway().download_bytes(url)

    async def get_candidates(
        self, app_id: int, game_name: str, category: ArtCategory, filters: Optional[ImageFilters] = None
    ) -> List[GameCandidate]:
        """Search candidates for an entry, annotated with result page counts."""
        async def annotate(candidates: List[GameCandidate]) -> None:
            if self.settings.discover_page_counts:
                await self.pagination.discover_page_counts(candidates, category, filters)
            else:
                apply_placeholder(candidates)

        return await self.search_cache.get_candidates(app_id, game_name, self._search, annotate)

    async def get_page(
        self, game_id: str, category: ArtCategory, page: int, filters: Optional[ImageFilters] = None
    ) -> List[ImageRecord]:
        """One page of images for a SteamGridDB game, from cache when possible."""
        return await self.grids.get_page(
            game_id, category, page, lambda: self._fetch_page(game_id, category, page, filters)
        )

    async def fetch_grids(
        self,
        app_id: int,
        page: int = 0,
        selected_grid_game_id: Optional[str] = None,
        *,
        name: Optional[str] = None,
        platform: Optional[Platform] = None,
        category: Optional[ArtCategory] = None,
    ) -> List[ImageRecord]:
        """Get the current category of grids for an app.

        Args:
            app_id: Native app id of the library entry
            page: Result page to return
            selected_grid_game_id: SteamGridDB game picked by the user, overrides
                automatic matching
            name: Display name (defaults to the selected game name)
            platform: Entry kind (defaults to the current platform)
            category: Art category (defaults to the selected grid type)

        Returns:
            Images on the requested page; empty if no game matched.
        """
        generation = self.state.next_generation()
        return await self._fetch_grids(
            generation, app_id, page, selected_grid_game_id,
            name=name, platform=platform, category=category,
        )

    async def _fetch_grids(
        self,
        generation: int,
        app_id: int,
        page: int,
        selected_grid_game_id: Optional[str],
        *,
        name: Optional[str] = None,
        platform: Optional[Platform] = None,
        category: Optional[ArtCategory] = None,
    ) -> List[ImageRecord]:
        category = category or self.state.grid_type.get()
        platform = platform or self.state.current_platform.get()
        name = name if name is not None else self.state.selected_game_name.get()
        filters = self.state.filters_for(category)
        logger.info(f"Fetching {category.value} grids for game {app_id} ({platform.value})...")

        candidates = await self.get_candidates(app_id, name, category, filters)

        if selected_grid_game_id is not None or not candidates:
            chosen = choose_candidate(candidates, selected_id=selected_grid_game_id)
        elif platform == Platform.STEAM:
            game_id = await self.identity_map.resolve_provider_id(app_id, self._lookup)
            chosen = choose_candidate(candidates, preferred_id=game_id)
        else:
            chosen = choose_candidate(candidates, name=name)

        if chosen is None:
            logger.info(f"No results for {category.value} for {name}.")
            return []

        if self.state.is_current(generation):
            self.state.active_grid_game_id.set(chosen.id)
            self.state.search_results.set(self.search_cache.snapshot())

        return await self.get_page(chosen.id, category, page, filters)

    async def refresh_grids(self) -> bool:
        """Fetch grids for the current UI selection and publish them to state.

        Returns:
            True if the result was applied, False if there is no selection or
            the selection changed while the request was running.
        """
        app_id = self.state.selected_app_id.get()
        if app_id is None:
            return False

        generation = self.state.next_generation()
        grids = await self._fetch_grids(
            generation,
            app_id,
            self.state.selected_result_page.get(),
            self.state.selected_steam_grid_game_id.get(),
        )

        if not self.state.is_current(generation):
            logger.debug(f"Discarding stale grids for {app_id}")
            return False

        self.state.grids.set(grids)
        return True

    async def fetch_grids_for_steam_game(self, app_id: int, category: Optional[ArtCategory] = None) -> List[ImageRecord]:
        """Get grids for a Steam game straight from its Steam app id."""
        category = category or self.state.grid_type.get()
        filters = self.state.filters_for(category)
        return await self.steam_grids.get_page(
            app_id, category, 0,
            lambda: self._require_gateway().get_images_by_steam_appid(app_id, category, filters),
        )

    async def get_grid_image(self, app_id: int, image_url: str, category: Optional[ArtCategory] = None):
        """Local path of an image, downloading it on first use.

        Raises:
            DownloadError: The image could not be downloaded.
        """
        logger.info(f"Fetching image {image_url}...")
        return await self.blob_store.get_or_fetch(
            app_id, image_url, category or self.state.grid_type.get()
        )

    def clear_memory_caches(self) -> None:
        self.search_cache.clear()
        self.identity_map.clear()
        self.steam_grids.clear()
        self.grids.clear()

    async def teardown(self) -> None:
        """Function to run when the app closes."""
        logger.info("Destroying CacheController...")
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        for gateway in self._retired_gateways + ([self.gateway] if self.gateway else []):
            try:
                await gateway.close()
            except Exception as e:
                logger.error(f"Error closing SteamGridDB client: {e}")
        self._retired_gateways.clear()
        self.gateway = None
        self._api_key = None

        if self.settings.clear_cache_on_exit:
            await self.blob_store.invalidate()
        self.clear_memory_caches()
        logger.info("CacheController destroyed.")
