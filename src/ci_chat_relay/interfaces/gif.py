"""Abstract interface for GIF search services."""

from typing import Protocol

from ..models.gif import GifResult


class GifSearchProvider(Protocol):
    """A single upstream GIF search."""

    async def search(self, term: str, limit: int) -> list[GifResult]:
        """
        Search for GIFs matching a term.

        Args:
            term: Free-text search term
            limit: Maximum number of results to request

        Returns:
            Results in the order the service ranked them

        Raises:
            TransportError: If the service can't be reached
            ApiError: If the response is not a usable result list
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
