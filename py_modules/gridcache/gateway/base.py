"""
Base ArtGateway class defining the interface to a remote art provider.

Every call may fail; implementations raise GatewayError and never return
partial results.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import ArtCategory, GameCandidate, ImageFilters, ImageRecord


class ArtGateway(ABC):
    """Search and download capability of an art provider."""

    @abstractmethod
    async def search_game(self, name: str) -> List[GameCandidate]:
        """
        Search provider games by name.

        Returns:
            Ordered candidates, best match first. Empty if nothing matched.
        """
        pass

    @abstractmethod
    async def get_game_by_steam_appid(self, app_id: int) -> Optional[GameCandidate]:
        """
        Look up the provider game for a Steam app id.

        Returns:
            The game, or None if the provider does not know the app.
        """
        pass

    @abstractmethod
    async def get_images_by_game_id(
        self,
        game_id: str,
        category: ArtCategory,
        page: int = 0,
        filters: Optional[ImageFilters] = None,
    ) -> List[ImageRecord]:
        """
        Get one page of images for a provider game.

        Returns:
            Images on that page; an empty list past the last page.
        """
        pass

    @abstractmethod
    async def get_images_by_steam_appid(
        self,
        app_id: int,
        category: ArtCategory,
        filters: Optional[ImageFilters] = None,
    ) -> List[ImageRecord]:
        """Get images for a Steam app id (not paginated)."""
        pass

    @abstractmethod
    async def download_bytes(self, url: str) -> bytes:
        """Download the raw bytes of an image."""
        pass

    async def close(self) -> None:
        """Release network resources. Default implementation does nothing."""
        return None
