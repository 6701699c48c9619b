"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field
from urllib.parse import urlparse

from src.core.earthquake import DEFAULT_KIND


USGS_FEED_BASE = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary"

DEFAULT_REFRESH_INTERVAL_SECONDS = 120
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class FeedEndpoint:
    """A named GeoJSON feed.

    Attributes:
        name: Short identifier used in logs and failure reports
        url: Feed URL
    """
    name: str
    url: str


# Overlapping windows: last hour (all), last 2.5 days (M2.5+), last 4.5 weeks (M4.5+)
DEFAULT_PRIMARY_ENDPOINTS = (
    FeedEndpoint("all_hour", f"{USGS_FEED_BASE}/all_hour.geojson"),
    FeedEndpoint("2.5_day", f"{USGS_FEED_BASE}/2.5_day.geojson"),
    FeedEndpoint("4.5_week", f"{USGS_FEED_BASE}/4.5_week.geojson"),
)

DEFAULT_FALLBACK_ENDPOINT = FeedEndpoint(
    "significant_month", f"{USGS_FEED_BASE}/significant_month.geojson"
)


@dataclass
class FeedConfig:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        primary_endpoints: Feeds fetched every cycle, in precedence order
        fallback_endpoint: Feed consulted only when all primaries yield nothing
        refresh_interval_seconds: Time between cycle starts
        request_timeout_seconds: Per-request timeout
        default_kind: Event kind used when a record has none
        min_magnitude: Display threshold for console consumers
    """
    primary_endpoints: tuple[FeedEndpoint, ...] = DEFAULT_PRIMARY_ENDPOINTS
    fallback_endpoint: FeedEndpoint = DEFAULT_FALLBACK_ENDPOINT
    refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    default_kind: str = DEFAULT_KIND
    min_magnitude: float = 0.0


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_url(url: str, field_name: str) -> list[ValidationError]:
    """Validate that a feed URL is an absolute http(s) URL.

    Pure function.
    """
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return [ValidationError(
            field=field_name,
            message=f"Not an http(s) URL: {url!r}",
        )]
    return []


def validate_config(config: FeedConfig) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if not config.primary_endpoints:
        errors.append(ValidationError(
            field="primary_endpoints",
            message="No primary feeds configured",
        ))

    seen_urls: set[str] = set()
    for i, endpoint in enumerate(config.primary_endpoints):
        errors.extend(validate_url(endpoint.url, f"primary_endpoints[{i}].url"))
        if endpoint.url in seen_urls:
            errors.append(ValidationError(
                field=f"primary_endpoints[{i}].url",
                message=f"Feed {endpoint.url} is listed more than once",
                severity="warning",
            ))
        seen_urls.add(endpoint.url)

    errors.extend(validate_url(config.fallback_endpoint.url, "fallback_endpoint.url"))
    if config.fallback_endpoint.url in seen_urls:
        errors.append(ValidationError(
            field="fallback_endpoint.url",
            message="Fallback feed is also a primary feed",
            severity="warning",
        ))

    if config.refresh_interval_seconds <= 0:
        errors.append(ValidationError(
            field="refresh_interval_seconds",
            message=f"Refresh interval must be positive, got {config.refresh_interval_seconds}",
        ))

    if config.request_timeout_seconds <= 0:
        errors.append(ValidationError(
            field="request_timeout_seconds",
            message=f"Request timeout must be positive, got {config.request_timeout_seconds}",
        ))

    if config.min_magnitude < 0:
        errors.append(ValidationError(
            field="min_magnitude",
            message=f"Negative minimum magnitude {config.min_magnitude} shows everything",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
