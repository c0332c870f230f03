"""Process-wide observable state shared between the UI and the grid cache.

Inputs (selected game, category, page, filters, api key, online flag) are set
by the UI. Outputs (active SteamGridDB game, in-flight downloads, search
results, applied grids) are set by the cache controller and observed by the UI.
"""

import itertools
import logging
from collections import Counter
from typing import Any, Callable, Dict, FrozenSet, Generic, List, Optional, TypeVar

from .models import ArtCategory, GameCandidate, ImageFilters, ImageRecord, Platform

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscriber = Callable[[], None]


class Store(Generic[T]):
    """A value with change subscribers.

    Subscribers are called immediately with the current value and then on
    every ``set``. ``subscribe`` returns a callable that removes the
    subscriber.
    """

    def __init__(self, value: T, name: str = ""):
        self._value = value
        self._name = name
        self._subscribers: List[Callable[[T], None]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception as e:
                logger.error(f"[State] Subscriber of '{self._name}' failed: {e}")

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscriber:
        self._subscribers.append(callback)
        callback(self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class AppState:
    """All stores the grid cache reads from or writes to."""

    def __init__(self):
        # Inputs
        self.online: Store[bool] = Store(True, "online")
        self.api_key: Store[str] = Store("", "api_key")
        self.current_platform: Store[Platform] = Store(Platform.STEAM, "current_platform")
        self.selected_app_id: Store[Optional[int]] = Store(None, "selected_app_id")
        self.selected_game_name: Store[str] = Store("", "selected_game_name")
        self.grid_type: Store[ArtCategory] = Store(ArtCategory.CAPSULE, "grid_type")
        self.selected_result_page: Store[int] = Store(0, "selected_result_page")
        self.selected_steam_grid_game_id: Store[Optional[str]] = Store(None, "selected_steam_grid_game_id")
        self.filters: Store[Dict[ArtCategory, ImageFilters]] = Store(
            {category: ImageFilters() for category in ArtCategory}, "filters"
        )

        # Outputs
        self.active_grid_game_id: Store[Optional[str]] = Store(None, "active_grid_game_id")
        self.downloading_app_ids: Store[FrozenSet[int]] = Store(frozenset(), "downloading_app_ids")
        self.search_results: Store[Dict[int, List[GameCandidate]]] = Store({}, "search_results")
        self.grids: Store[List[ImageRecord]] = Store([], "grids")

        # An app can have several images downloading at once
        self._download_counts: Counter = Counter()

        self._generations = itertools.count(1)
        self._current_generation = 0

    def filters_for(self, category: ArtCategory) -> ImageFilters:
        return self.filters.get().get(category) or ImageFilters()

    # -- request generations ---------------------------------------------

    def next_generation(self) -> int:
        """Start a new request; every earlier request becomes stale."""
        self._current_generation = next(self._generations)
        return self._current_generation

    def is_current(self, generation: int) -> bool:
        return generation == self._current_generation

    # -- downloads --------------------------------------------------------

    def mark_downloading(self, app_id: int) -> None:
        self._download_counts[app_id] += 1
        self.downloading_app_ids.set(frozenset(self._download_counts))

    def clear_downloading(self, app_id: int) -> None:
        self._download_counts[app_id] -= 1
        if self._download_counts[app_id] <= 0:
            del self._download_counts[app_id]
        self.downloading_app_ids.set(frozenset(self._download_counts))

    def is_downloading(self, app_id: int) -> bool:
        return app_id in self.downloading_app_ids.get()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'online': self.online.get(),
            'current_platform': self.current_platform.get().value,
            'selected_app_id': self.selected_app_id.get(),
            'grid_type': self.grid_type.get().value,
            'selected_result_page': self.selected_result_page.get(),
            'active_grid_game_id': self.active_grid_game_id.get(),
            'downloading_app_ids': sorted(self.downloading_app_ids.get()),
            'grid_count': len(self.grids.get()),
        }
