"""Remote art provider gateways."""

from .base import ArtGateway
from .steamgriddb import CATEGORY_ENDPOINTS, SteamGridDBGateway

__all__ = [
    "ArtGateway",
    "CATEGORY_ENDPOINTS",
    "SteamGridDBGateway",
]
