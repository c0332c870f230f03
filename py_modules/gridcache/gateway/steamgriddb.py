"""
SteamGridDB gateway.

Game search and Steam app id lookups go through python-steamgriddb (blocking,
so they run in the default executor). Image lists are paginated, which the
library does not expose, so they and image downloads use aiohttp against the
v2 REST API directly.

Requires: pip install python-steamgriddb aiohttp certifi
"""

import asyncio
import logging
import ssl
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import certifi
from steamgrid import SteamGridDB
from steamgrid.http import HTTPException

from ..errors import GatewayError
from ..models import ArtCategory, GameCandidate, ImageFilters, ImageRecord
from .base import ArtGateway

logger = logging.getLogger(__name__)

STEAMGRIDDB_API_BASE = "https://www.steamgriddb.com/api/v2"

DEFAULT_TIMEOUT = 15.0


@dataclass(frozen=True)
class CategoryEndpoint:
    """API resource and fixed dimension filter for one art category."""
    resource: str
    dimensions: Tuple[str, ...] = ()


CATEGORY_ENDPOINTS: Dict[ArtCategory, CategoryEndpoint] = {
    ArtCategory.CAPSULE: CategoryEndpoint("grids", ("600x900", "342x482", "660x930")),
    ArtCategory.WIDE_CAPSULE: CategoryEndpoint("grids", ("460x215", "920x430")),
    ArtCategory.HERO: CategoryEndpoint("heroes"),
    ArtCategory.LOGO: CategoryEndpoint("logos"),
    ArtCategory.ICON: CategoryEndpoint("icons"),
}


def _to_timestamp(value: Any) -> Optional[int]:
    if value is None:
        return None
    if hasattr(value, "timestamp"):
        return int(value.timestamp())
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def game_from_steamgrid(game: Any) -> GameCandidate:
    """Convert a python-steamgriddb Game into a GameCandidate."""
    return GameCandidate(
        id=str(game.id),
        name=getattr(game, 'name', '') or '',
        release_date=_to_timestamp(getattr(game, 'release_date', None)),
        verified=bool(getattr(game, 'verified', False)),
        types=list(getattr(game, 'types', None) or []),
    )


def image_from_json(data: Dict[str, Any], category: ArtCategory) -> ImageRecord:
    """Convert an image object from the REST API into an ImageRecord."""
    return ImageRecord(
        id=str(data['id']),
        url=data['url'],
        category=category,
        thumb=data.get('thumb'),
        width=data.get('width'),
        height=data.get('height'),
        style=data.get('style'),
        mime=data.get('mime'),
        score=data.get('score'),
    )


def build_query(category: ArtCategory, page: Optional[int], filters: Optional[ImageFilters]) -> Dict[str, str]:
    """Query parameters for an image list request."""
    filters = filters or ImageFilters()
    params = filters.to_params()
    endpoint = CATEGORY_ENDPOINTS[category]
    if endpoint.dimensions and not filters.dimensions:
        params['dimensions'] = ",".join(endpoint.dimensions)
    if page is not None:
        params['page'] = str(page)
    return params


class SteamGridDBGateway(ArtGateway):
    """ArtGateway backed by SteamGridDB."""

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT, client: Optional[SteamGridDB] = None):
        if not api_key:
            raise ValueError("SteamGridDB API key is required")
        self.api_key = api_key
        self.timeout = timeout
        self.client = client or SteamGridDB(api_key)
        self.session: Optional[aiohttp.ClientSession] = None
        logger.info("[SteamGridDB] Client initialized")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context, limit_per_host=5)
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    async def close(self) -> None:
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    async def _run_blocking(self, fn, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn, *args)
        except Exception as e:
            raise GatewayError(f"SteamGridDB request failed: {getattr(fn, '__name__', fn)}", str(e)) from e

    async def search_game(self, name: str) -> List[GameCandidate]:
        results = await self._run_blocking(self.client.search_game, name)
        candidates = [game_from_steamgrid(game) for game in results or []]
        logger.debug(f"[SteamGridDB] Search '{name}' returned {len(candidates)} games")
        return candidates

    def _game_by_steam_appid(self, app_id: int) -> Any:
        try:
            return self.client.get_game_by_steam_appid(app_id)
        except HTTPException as e:
            # The library raises on a 404 rather than returning None
            if "(404)" in str(e):
                logger.debug(f"[SteamGridDB] Steam app {app_id} not found")
                return None
            raise

    async def get_game_by_steam_appid(self, app_id: int) -> Optional[GameCandidate]:
        game = await self._run_blocking(self._game_by_steam_appid, app_id)
        if not game:
            return None
        return game_from_steamgrid(game)

    async def _get_json(self, path: str, params: Dict[str, str]) -> Optional[Any]:
        """GET an API path; returns the `data` field, or None on 404."""
        url = f"{STEAMGRIDDB_API_BASE}{path}"
        session = await self._get_session()
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with session.get(url, params=params, headers=headers) as resp:
                if resp.status == 404:
                    return None
                if resp.status != 200:
                    raise GatewayError(f"SteamGridDB request failed: HTTP {resp.status}", url)
                payload = await resp.json()
        except GatewayError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise GatewayError("SteamGridDB request failed", f"{url}: {e}") from e

        if not payload.get('success', False):
            raise GatewayError("SteamGridDB returned an error", payload.get('errors'))
        return payload.get('data')

    async def get_images_by_game_id(
        self,
        game_id: str,
        category: ArtCategory,
        page: int = 0,
        filters: Optional[ImageFilters] = None,
    ) -> List[ImageRecord]:
        resource = CATEGORY_ENDPOINTS[category].resource
        data = await self._get_json(f"/{resource}/game/{game_id}", build_query(category, page, filters))
        return [image_from_json(item, category) for item in data or []]

    async def get_images_by_steam_appid(
        self,
        app_id: int,
        category: ArtCategory,
        filters: Optional[ImageFilters] = None,
    ) -> List[ImageRecord]:
        resource = CATEGORY_ENDPOINTS[category].resource
        data = await self._get_json(f"/{resource}/steam/{app_id}", build_query(category, None, filters))
        return [image_from_json(item, category) for item in data or []]

    async def download_bytes(self, url: str) -> bytes:
        session = await self._get_session()
        try:
            async with session.get(url) as resp:
                if resp.status != 200:
                    raise GatewayError(f"Failed to download image: HTTP {resp.status}", url)
                return await resp.read()
        except GatewayError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GatewayError("Failed to download image", f"{url}: {e}") from e
