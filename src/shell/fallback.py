"""Fallback feed source - Imperative Shell.

A single curated, lower-frequency feed (USGS 'significant events, past
month') consulted only when every primary feed yields nothing usable.
"""

import logging

from src.core.config import DEFAULT_FALLBACK_ENDPOINT, FeedEndpoint
from src.core.earthquake import Event
from src.shell.feed_client import FeedClient


logger = logging.getLogger(__name__)


class FallbackSource:
    """Last-resort feed with the same error taxonomy as FeedClient.fetch."""

    def __init__(
        self,
        feed_client: FeedClient,
        endpoint: FeedEndpoint = DEFAULT_FALLBACK_ENDPOINT,
    ) -> None:
        self.feed_client = feed_client
        self.endpoint = endpoint

    async def fetch(self) -> list[Event]:
        """Fetch the fallback feed.

        Raises:
            EndpointUnavailableError: Non-success status or unusable body
            EndpointUnreachableError: DNS, connection or timeout failure
        """
        logger.info("Using fallback feed %s", self.endpoint.name)
        return await self.feed_client.fetch(self.endpoint.url)
