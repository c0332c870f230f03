"""Exceptions raised by the grid cache.

"No artwork found" is not an error: lookups that match nothing return an
empty list.
"""

from typing import Any, Optional


class ArtCacheError(Exception):
    """Base class for steam-art-cache errors."""

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class GatewayError(ArtCacheError):
    """A call to the art provider failed (transport, HTTP or API error)."""


class DownloadError(ArtCacheError):
    """An image could not be downloaded into the disk cache."""

    def __init__(self, message: str, url: str, details: Optional[Any] = None) -> None:
        super().__init__(message, details)
        self.url = url


class ClientUnavailableError(ArtCacheError):
    """No art provider client is configured (missing API key)."""


class OfflineError(ArtCacheError):
    """A cache miss needed the network while the app is offline."""
