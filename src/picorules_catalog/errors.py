from __future__ import annotations


class CatalogError(Exception):
    """Base class for failures outside the extraction engine."""


class FetchError(CatalogError):
    def __init__(
        self, message: str, /, *, url: str | None = None, status: int | None = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class CacheError(CatalogError):
    """A cached payload could not be read back."""
