"""steam-art-cache: cached SteamGridDB artwork lookups for a Steam art manager."""

from .errors import (
    ArtCacheError,
    ClientUnavailableError,
    DownloadError,
    GatewayError,
    OfflineError,
)
from .models import ArtCategory, GameCandidate, ImageFilters, ImageRecord, Platform
from .services.cache_controller import CacheController
from .settings import Settings, load_settings, save_settings
from .state import AppState, Store

__version__ = "0.1.0"

__all__ = [
    "AppState",
    "ArtCacheError",
    "ArtCategory",
    "CacheController",
    "ClientUnavailableError",
    "DownloadError",
    "GameCandidate",
    "GatewayError",
    "ImageFilters",
    "ImageRecord",
    "OfflineError",
    "Platform",
    "Settings",
    "Store",
    "load_settings",
    "save_settings",
]
