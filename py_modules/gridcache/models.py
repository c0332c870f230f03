"""
Data model shared by the caches, the gateway and the controller.

Native app ids (assigned by Steam, or synthesized for non-Steam shortcuts) are
ints. Provider game ids (assigned by SteamGridDB) are normalized to strings so
that ids coming back from the REST API and from python-steamgriddb compare
equal.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse


class ArtCategory(str, Enum):
    """Artwork shapes. The value doubles as the on-disk sub-directory name."""
    CAPSULE = "Capsule"
    WIDE_CAPSULE = "Wide Capsule"
    HERO = "Hero"
    LOGO = "Logo"
    ICON = "Icon"


class Platform(str, Enum):
    """Kind of library entry."""
    STEAM = "Steam"          # supports direct lookup by Steam app id
    NON_STEAM = "Non-Steam"  # name search only


@dataclass
class GameCandidate:
    """A SteamGridDB game returned by a name search or an id lookup"""
    id: str
    name: str
    release_date: Optional[int] = None
    verified: bool = False
    types: List[str] = field(default_factory=list)
    num_result_pages: Optional[int] = None  # set by pagination discovery

    def __post_init__(self):
        self.id = str(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ImageRecord:
    """A single piece of artwork as listed by the provider."""
    id: str
    url: str
    category: ArtCategory
    thumb: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    style: Optional[str] = None
    mime: Optional[str] = None
    score: Optional[int] = None

    @property
    def filename(self) -> str:
        """Final path segment of the image URL."""
        return url_basename(self.url)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['category'] = self.category.value
        return data


@dataclass
class ImageFilters:
    """Query filters applied to image list requests.

    Defaults mirror the art manager's: static and animated images, and no
    filtering on nsfw/humor/epilepsy.
    """
    styles: List[str] = field(default_factory=list)
    dimensions: List[str] = field(default_factory=list)
    mimes: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=lambda: ["static", "animated"])
    nsfw: str = "any"
    humor: str = "any"
    epilepsy: str = "any"

    def to_params(self) -> Dict[str, str]:
        """Build SteamGridDB query parameters. Empty lists are left out."""
        params = {}
        for name in ('styles', 'dimensions', 'mimes', 'types'):
            values = getattr(self, name)
            if values:
                params[name] = ",".join(values)
        params['nsfw'] = self.nsfw
        params['humor'] = self.humor
        params['epilepsy'] = self.epilepsy
        return params


def url_basename(url: str) -> str:
    """Return the last path segment of a URL (query string ignored)."""
    path = urlparse(url).path or url
    return path.rsplit("/", 1)[-1]
