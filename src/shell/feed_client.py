"""USGS Feed Client - Imperative Shell.

This module handles HTTP communication with the USGS GeoJSON summary feeds.
All I/O is contained here; normalization is in the core module.
"""

import logging
from typing import Any

import httpx

from src.core.config import DEFAULT_REQUEST_TIMEOUT_SECONDS
from src.core.earthquake import DEFAULT_KIND, Event, normalize_features
from src.core.errors import EndpointUnavailableError, EndpointUnreachableError


logger = logging.getLogger(__name__)


class FeedClient:
    """Fetches and normalizes one GeoJSON feed per call.

    This is part of the imperative shell - it handles HTTP I/O.
    The client never retries; a failed call raises and the caller decides.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        default_kind: str = DEFAULT_KIND,
    ) -> None:
        """Initialize feed client.

        Args:
            http_client: Shared async HTTP client (created if not provided;
                         a provided client is closed by its owner)
            timeout: Request timeout in seconds
            default_kind: Event kind for records without a 'type'
        """
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
        )
        self.timeout = timeout
        self.default_kind = default_kind

    async def __aenter__(self) -> "FeedClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def _get_features(self, url: str) -> list[Any]:
        """GET a feed and return its raw 'features' list."""
        try:
            response = await self.http_client.get(url, timeout=self.timeout)
        except httpx.RequestError as e:
            raise EndpointUnreachableError(url, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise EndpointUnavailableError(url, response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise EndpointUnavailableError(
                url, response.status_code, reason="invalid payload"
            ) from e

        if not isinstance(data, dict):
            raise EndpointUnavailableError(
                url, response.status_code, reason="invalid payload"
            )

        features = data.get("features") or []
        if not isinstance(features, list):
            raise EndpointUnavailableError(
                url, response.status_code, reason="invalid payload"
            )

        return features

    async def fetch(self, url: str) -> list[Event]:
        """Fetch one feed and normalize its features.

        This method performs HTTP I/O.

        Args:
            url: GeoJSON feed URL

        Returns:
            Events in feed order; empty if the feed has no features

        Raises:
            EndpointUnavailableError: Non-success status or unusable body
            EndpointUnreachableError: DNS, connection or timeout failure
        """
        logger.info("Fetching feed %s", url)

        features = await self._get_features(url)
        events = normalize_features(features, self.default_kind)

        skipped = len(features) - len(events)
        if skipped:
            logger.debug("Skipped %d malformed records from %s", skipped, url)

        logger.info("Fetched %d earthquakes from %s", len(events), url)

        return events
