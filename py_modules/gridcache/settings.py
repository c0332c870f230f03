"""User settings for steam-art-cache.

Stored as JSON in user data (~/.local/share/steam-art-cache) so they survive
cache wipes. Unknown keys in the file are ignored; missing keys keep their
defaults.
"""

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

from .utils.paths import SETTINGS_PATH

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    steamgriddb_api_key: str = ""
    cache_dir: Optional[str] = None  # None -> utils.paths default
    # Walk every result page per candidate instead of using the placeholder count
    discover_page_counts: bool = False
    # Wipe the disk cache on controlled shutdown
    clear_cache_on_exit: bool = True
    request_timeout: float = 15.0


def get_settings_path() -> Path:
    return Path(SETTINGS_PATH)


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings, falling back to defaults on a missing or unreadable file."""
    settings_path = path or get_settings_path()
    try:
        if settings_path.exists():
            with open(settings_path, "r") as f:
                data = json.load(f)
            known = {f.name for f in fields(Settings)}
            return Settings(**{k: v for k, v in data.items() if k in known})
    except Exception as e:
        logger.error(f"Error loading settings from {settings_path}: {e}")
    return Settings()


def save_settings(settings: Settings, path: Optional[Path] = None) -> bool:
    """Save settings to disk."""
    settings_path = path or get_settings_path()
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        with open(settings_path, "w") as f:
            json.dump(asdict(settings), f, indent=2)
        logger.info(f"Saved settings to {settings_path}")
        return True
    except Exception as e:
        logger.error(f"Error saving settings: {e}")
        return False
