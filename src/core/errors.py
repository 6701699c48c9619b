"""Feed pipeline errors.

Each layer absorbs the errors of the layer below it:
records are skipped, endpoints are excluded from the cycle, and only
NoDataAvailableError reaches the poller's error callback.
"""

from dataclasses import dataclass


class FeedError(Exception):
    """Base class for all feed pipeline errors."""


class MalformedRecordError(FeedError):
    """A provider record is missing required fields or has bad values."""

    def __init__(self, message: str, record_id: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id


class EndpointError(FeedError):
    """A single feed endpoint could not deliver a usable batch."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class EndpointUnavailableError(EndpointError):
    """Endpoint answered, but with a non-success status or unusable body."""

    def __init__(self, url: str, status_code: int, reason: str | None = None) -> None:
        message = f"{url} returned HTTP {status_code}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(url, message)
        self.status_code = status_code
        self.reason = reason


class EndpointUnreachableError(EndpointError):
    """Transport-level failure: DNS, connection reset, timeout."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(url, f"{url} unreachable: {reason}")
        self.reason = reason


@dataclass(frozen=True)
class EndpointFailure:
    """Record of one endpoint that failed during a cycle.

    Attributes:
        name: Endpoint name from configuration
        url: Endpoint URL
        error: Human-readable error message
    """
    name: str
    url: str
    error: str


class NoDataAvailableError(FeedError):
    """Every primary endpoint and the fallback produced nothing usable."""

    def __init__(
        self,
        failures: tuple[EndpointFailure, ...] = (),
        fallback_error: str | None = None,
    ) -> None:
        message = "No earthquake data available from any feed"
        if fallback_error:
            message = f"{message} (fallback: {fallback_error})"
        super().__init__(message)
        self.failures = failures
        self.fallback_error = fallback_error
