"""Giphy search adapter.

Implements the GifSearchProvider protocol with a single GET against the
Giphy search endpoint. Caching and result selection live in
``core.gif_resolver``; this module only talks to the API.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ...config.schema import GiphyConfig
from ...models.gif import GifResult
from ...utils.async_helpers import ApiError, TransportError

log = structlog.get_logger()


class GiphyClient:
    """Giphy adapter implementing the GifSearchProvider protocol.

    Example:
        client = GiphyClient(GiphyConfig(api_key="..."))
        results = await client.search("crikey", limit=20)
    """

    def __init__(
        self,
        config: GiphyConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._client = httpx.AsyncClient(timeout=config.timeout, transport=transport)

    async def search(self, term: str, limit: int) -> list[GifResult]:
        """Search Giphy and return ``(id, original url)`` pairs.

        Results without an id or an original-size URL are skipped.

        Raises:
            TransportError: If Giphy can't be reached.
            ApiError: On a non-200 answer or an unexpected body.
        """
        params: dict[str, str | int] = {
            "api_key": self._config.api_key,
            "q": term,
            "limit": limit,
        }
        try:
            response = await self._client.get(self._config.base_url, params=params)
        except httpx.TransportError as e:
            raise TransportError(f"failed to call Giphy API: {e}") from e

        if response.status_code != 200:
            raise ApiError(
                f"Giphy API returned status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(f"failed to parse Giphy response: {e}") from e

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise ApiError("failed to parse Giphy response: missing 'data'")

        results = [r for r in (self._parse_result(item) for item in data) if r is not None]
        log.debug("giphy_search", term=term, limit=limit, results=len(results))
        return results

    @staticmethod
    def _parse_result(item: Any) -> GifResult | None:
        if not isinstance(item, dict):
            return None
        gif_id = item.get("id")
        images = item.get("images")
        original = images.get("original") if isinstance(images, dict) else None
        url = original.get("url") if isinstance(original, dict) else None
        if not isinstance(gif_id, str) or not isinstance(url, str) or not url:
            return None
        return GifResult(id=gif_id, url=url)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
