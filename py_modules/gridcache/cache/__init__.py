"""In-memory result caches and the on-disk image cache."""

from .blob_store import DiskBlobStore
from .grid_cache import GridResultCache
from .search_cache import IdentityMap, SearchResultCache

__all__ = [
    "DiskBlobStore",
    "GridResultCache",
    "IdentityMap",
    "SearchResultCache",
]
