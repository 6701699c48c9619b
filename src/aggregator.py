"""Feed Aggregator - Wires Functional Core and Imperative Shell.

This module runs one cycle: fetch every primary feed concurrently, merge
and deduplicate, and fall back to the curated feed if nothing came back.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.core.config import FeedConfig, FeedEndpoint
from src.core.dedup import merge_batches
from src.core.earthquake import Event
from src.core.errors import EndpointError, EndpointFailure, NoDataAvailableError
from src.core.snapshot import SOURCE_FALLBACK, SOURCE_PRIMARY, Snapshot
from src.shell.fallback import FallbackSource
from src.shell.feed_client import FeedClient


logger = logging.getLogger(__name__)


@dataclass
class EndpointResult:
    """Outcome of fetching one endpoint: either events or an error.

    Attributes:
        endpoint: The endpoint that was fetched
        events: Normalized events (empty on failure)
        error: Error message if the fetch failed
    """
    endpoint: FeedEndpoint
    events: list[Event] = field(default_factory=list)
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_failure(self) -> EndpointFailure:
        return EndpointFailure(
            name=self.endpoint.name,
            url=self.endpoint.url,
            error=self.error or "",
        )


class FeedAggregator:
    """Coordinates one fetch-merge-fallback cycle.

    This class wires together:
    - Feed client (fetches and normalizes each primary feed)
    - Core functions (merge and deduplication)
    - Fallback source (consulted only when primaries yield nothing)
    """

    def __init__(
        self,
        config: FeedConfig,
        feed_client: FeedClient | None = None,
        fallback_source: FallbackSource | None = None,
    ) -> None:
        """Initialize aggregator with configuration.

        Args:
            config: Application configuration
            feed_client: Feed client (created if not provided)
            fallback_source: Fallback source (created if not provided)
        """
        self.config = config
        self.feed_client = feed_client or FeedClient(
            timeout=config.request_timeout_seconds,
            default_kind=config.default_kind,
        )
        self.fallback_source = fallback_source or FallbackSource(
            self.feed_client,
            config.fallback_endpoint,
        )

    async def _fetch_endpoint(self, endpoint: FeedEndpoint) -> EndpointResult:
        """Fetch one endpoint, capturing any failure as a value."""
        try:
            events = await self.feed_client.fetch(endpoint.url)
        except EndpointError as e:
            logger.warning("Failed to fetch from %s: %s", endpoint.name, e)
            return EndpointResult(endpoint=endpoint, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error fetching from %s", endpoint.name)
            return EndpointResult(endpoint=endpoint, error=f"{type(e).__name__}: {e}")

        return EndpointResult(endpoint=endpoint, events=events)

    async def fetch_all(self, endpoints: tuple[FeedEndpoint, ...]) -> list[EndpointResult]:
        """Fetch all endpoints concurrently.

        Returns:
            One result per endpoint, in declaration order
        """
        return list(await asyncio.gather(
            *(self._fetch_endpoint(endpoint) for endpoint in endpoints)
        ))

    async def _run_fallback(self) -> list[Event]:
        try:
            return await self.fallback_source.fetch()
        except EndpointError as e:
            logger.warning("Fallback feed failed: %s", e)
            raise
        except Exception as e:
            logger.exception("Unexpected error fetching fallback feed")
            raise EndpointError(self.fallback_source.endpoint.url, str(e)) from e

    async def run(
        self,
        primary_endpoints: tuple[FeedEndpoint, ...] | None = None,
    ) -> Snapshot:
        """Run a complete fetch cycle.

        This is the main entry point that:
        1. Fetches every primary feed concurrently
        2. Merges batches in declaration order, first-seen ID wins
        3. Falls back to the curated feed if the merge is empty

        Args:
            primary_endpoints: Feeds to fetch (defaults to the configured primaries)

        Returns:
            Snapshot; degraded=True if it came from the fallback feed

        Raises:
            NoDataAvailableError: If primaries and fallback all failed or were empty
        """
        if primary_endpoints is None:
            primary_endpoints = self.config.primary_endpoints

        results = await self.fetch_all(primary_endpoints)
        failures = tuple(r.to_failure() for r in results if not r.success)

        events = merge_batches(r.events for r in results if r.success)

        logger.info(
            "Merged %d unique earthquakes from %d feeds (%d failed)",
            len(events),
            len(results),
            len(failures),
        )

        if events:
            return Snapshot(
                events=tuple(events),
                fetched_at=datetime.now(timezone.utc),
                failed_endpoints=failures,
                source=SOURCE_PRIMARY,
            )

        logger.warning("No data from primary feeds, trying fallback")

        try:
            fallback_events = await self._run_fallback()
        except EndpointError as e:
            raise NoDataAvailableError(failures, fallback_error=str(e)) from e

        if not fallback_events:
            raise NoDataAvailableError(failures, fallback_error="fallback feed is empty")

        logger.warning(
            "Serving %d earthquakes from fallback feed %s",
            len(fallback_events),
            self.fallback_source.endpoint.name,
        )

        return Snapshot(
            events=tuple(merge_batches([fallback_events])),
            fetched_at=datetime.now(timezone.utc),
            degraded=True,
            failed_endpoints=failures,
            source=SOURCE_FALLBACK,
        )
