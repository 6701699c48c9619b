"""Earthquake event model and normalization - Pure functions.

This module converts USGS GeoJSON features into canonical Event objects.
All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from src.core.errors import MalformedRecordError


DEFAULT_KIND = "earthquake"
UNKNOWN_PLACE = "Unknown location"


@dataclass(frozen=True)
class Event:
    """Immutable seismic event.

    Attributes:
        id: Provider-assigned event ID (deduplication key)
        magnitude: Event magnitude
        place: Human-readable location description
        time: Event timestamp (UTC), None if the provider omitted it
        coordinates: (latitude, longitude) pair
        depth: Depth in kilometers, None if not reported
        url: Provider detail page URL
        kind: Event classification (e.g. 'earthquake', 'quarry blast')
    """
    id: str
    magnitude: float
    place: str
    time: datetime | None
    coordinates: tuple[float, float]
    depth: float | None = None
    url: str | None = None
    kind: str = DEFAULT_KIND

    @property
    def latitude(self) -> float:
        return self.coordinates[0]

    @property
    def longitude(self) -> float:
        return self.coordinates[1]


class MagnitudeClass(Enum):
    """Magnitude bands used by the map legend."""
    MINOR = "minor"
    LIGHT = "light"
    MAJOR = "major"


def _to_float(value: Any, field_name: str, record_id: str | None) -> float:
    # bool is an int subclass; a flag is never a measurement
    if isinstance(value, bool) or value is None:
        raise MalformedRecordError(f"{field_name} is not numeric: {value!r}", record_id)
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise MalformedRecordError(f"{field_name} is not numeric: {value!r}", record_id)
    if not math.isfinite(result):
        raise MalformedRecordError(f"{field_name} is not finite: {value!r}", record_id)
    return result


def _to_text(value: Any, default: str | None) -> str | None:
    if isinstance(value, str) and value:
        return value
    return default


def _parse_time(time_ms: Any) -> datetime | None:
    """Convert USGS epoch milliseconds to a UTC datetime."""
    if time_ms is None or isinstance(time_ms, bool):
        return None
    try:
        return datetime.fromtimestamp(float(time_ms) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def normalize_feature(
    feature: dict[str, Any],
    default_kind: str = DEFAULT_KIND,
) -> Event:
    """Normalize a single GeoJSON feature into an Event.

    Pure function. USGS coordinates are ordered (longitude, latitude, depth);
    the Event stores (latitude, longitude) and keeps depth separately.

    Args:
        feature: GeoJSON feature dict from a USGS feed
        default_kind: Label used when the feature has no 'type' property

    Returns:
        Normalized Event

    Raises:
        MalformedRecordError: If id, coordinates or magnitude are unusable
    """
    if not isinstance(feature, dict):
        raise MalformedRecordError(f"Feature is not an object: {type(feature).__name__}")

    event_id = feature.get("id")
    if not event_id or not isinstance(event_id, str):
        raise MalformedRecordError("Feature has no id")

    props = feature.get("properties") or {}
    if not isinstance(props, dict):
        raise MalformedRecordError("Feature properties are not an object", event_id)

    geometry = feature.get("geometry") or {}
    coords = geometry.get("coordinates") if isinstance(geometry, dict) else None

    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        raise MalformedRecordError("Feature has no coordinate pair", event_id)

    longitude = _to_float(coords[0], "longitude", event_id)
    latitude = _to_float(coords[1], "latitude", event_id)

    if not -90 <= latitude <= 90:
        raise MalformedRecordError(f"Latitude {latitude} out of range", event_id)
    if not -180 <= longitude <= 180:
        raise MalformedRecordError(f"Longitude {longitude} out of range", event_id)

    depth = None
    if len(coords) >= 3 and coords[2] is not None:
        depth = _to_float(coords[2], "depth", event_id)

    magnitude = _to_float(props.get("mag"), "magnitude", event_id)

    return Event(
        id=event_id,
        magnitude=magnitude,
        place=_to_text(props.get("place"), UNKNOWN_PLACE),
        time=_parse_time(props.get("time")),
        coordinates=(latitude, longitude),
        depth=depth,
        url=_to_text(props.get("url"), None),
        kind=_to_text(props.get("type"), default_kind),
    )


def normalize_features(
    features: Iterable[dict[str, Any]],
    default_kind: str = DEFAULT_KIND,
) -> list[Event]:
    """Normalize a batch of features, skipping malformed ones.

    Pure function. Feed order is preserved.

    Args:
        features: GeoJSON features from one feed
        default_kind: Label used when a feature has no 'type' property

    Returns:
        List of valid Events
    """
    events = []

    for feature in features:
        try:
            events.append(normalize_feature(feature, default_kind))
        except MalformedRecordError:
            continue

    return events


def filter_by_magnitude(
    events: Iterable[Event],
    min_magnitude: float | None = None,
    max_magnitude: float | None = None,
) -> list[Event]:
    """Filter events by magnitude range.

    Pure function.

    Args:
        events: Events to filter
        min_magnitude: Minimum magnitude (inclusive), None for no minimum
        max_magnitude: Maximum magnitude (inclusive), None for no maximum

    Returns:
        Filtered list of events
    """
    result = list(events)

    if min_magnitude is not None:
        result = [e for e in result if e.magnitude >= min_magnitude]

    if max_magnitude is not None:
        result = [e for e in result if e.magnitude <= max_magnitude]

    return result


def classify_magnitude(magnitude: float) -> MagnitudeClass:
    """Classify a magnitude into a legend band.

    Pure function.
    """
    if magnitude >= 6.0:
        return MagnitudeClass.MAJOR
    elif magnitude >= 4.0:
        return MagnitudeClass.LIGHT
    else:
        return MagnitudeClass.MINOR
