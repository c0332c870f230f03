"""steam-art-cache file path constants and utilities."""

import os
from pathlib import Path
from typing import Optional


# User data directory (settings live here and survive cache wipes)
ART_CACHE_DATA_DIR = os.path.expanduser("~/.local/share/steam-art-cache")

SETTINGS_PATH = os.path.join(ART_CACHE_DATA_DIR, "settings.json")

# Application cache directory; grids are stored in a sub-directory per category
APP_CACHE_DIR = os.path.expanduser("~/.cache/steam-art-cache")
GRIDS_CACHE_DIR = os.path.join(APP_CACHE_DIR, "grids")

CACHE_DIR_ENV = "STEAM_ART_CACHE_DIR"


def get_grids_cache_dir(override: Optional[str] = None) -> Path:
    """Get the grid cache root.

    Args:
        override: Explicit directory (usually from settings)

    Returns:
        The override if given, else $STEAM_ART_CACHE_DIR, else the default.
    """
    if override:
        return Path(os.path.expanduser(override))
    env_dir = os.environ.get(CACHE_DIR_ENV)
    if env_dir:
        return Path(os.path.expanduser(env_dir))
    return Path(GRIDS_CACHE_DIR)

