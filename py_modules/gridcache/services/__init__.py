"""Grid cache services."""

from .cache_controller import CacheController, choose_candidate
from .pagination import PLACEHOLDER_PAGE_COUNT, PaginationDiscoverer, apply_placeholder

__all__ = [
    "CacheController",
    "choose_candidate",
    "PLACEHOLDER_PAGE_COUNT",
    "PaginationDiscoverer",
    "apply_placeholder",
]
