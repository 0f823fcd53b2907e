"""Data models for GIF search results."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GifResult:
    """A single search hit from the GIF API."""

    id: str
    url: str


@dataclass(frozen=True)
class GifCacheEntry:
    """Candidate URLs cached for one search term."""

    urls: tuple[str, ...]
    fetched_at: float  # Cache clock reading at refresh time
