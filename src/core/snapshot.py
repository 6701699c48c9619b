"""Aggregate snapshot model - Pure data structures.

A Snapshot is the merged, deduplicated view of all known events produced
by one successful cycle. It replaces the previous snapshot wholesale.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.core.earthquake import Event, MagnitudeClass, classify_magnitude, filter_by_magnitude
from src.core.errors import EndpointFailure


SOURCE_PRIMARY = "primary"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time set of unique events.

    Attributes:
        events: Events with unique IDs, in declaration-order precedence
        fetched_at: When the cycle that produced this snapshot finished
        degraded: True if the snapshot came from the fallback feed
        failed_endpoints: Primary endpoints that failed during the cycle
        source: 'primary' or 'fallback'
    """
    events: tuple[Event, ...]
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    degraded: bool = False
    failed_endpoints: tuple[EndpointFailure, ...] = ()
    source: str = SOURCE_PRIMARY

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def has_failures(self) -> bool:
        """True if any primary endpoint failed, even if the cycle succeeded."""
        return len(self.failed_endpoints) > 0


@dataclass(frozen=True)
class SnapshotStats:
    """Counts shown alongside the magnitude selector.

    Attributes:
        total: All events in the snapshot
        visible: Events at or above the minimum magnitude
        percent_showing: visible / total as a rounded percentage
        by_class: Visible event counts per magnitude band
    """
    total: int
    visible: int
    percent_showing: int
    by_class: dict[MagnitudeClass, int] = field(default_factory=dict)


def visible_events(snapshot: Snapshot, min_magnitude: float = 0.0) -> list[Event]:
    """Events at or above the minimum magnitude.

    Pure function.
    """
    return filter_by_magnitude(snapshot.events, min_magnitude=min_magnitude)


def compute_stats(snapshot: Snapshot, min_magnitude: float = 0.0) -> SnapshotStats:
    """Compute total/visible counts for a magnitude threshold.

    Pure function.

    Args:
        snapshot: Snapshot to summarize
        min_magnitude: Minimum magnitude threshold (inclusive)

    Returns:
        SnapshotStats for the threshold
    """
    visible = visible_events(snapshot, min_magnitude)
    total = snapshot.count

    by_class = {band: 0 for band in MagnitudeClass}
    for event in visible:
        by_class[classify_magnitude(event.magnitude)] += 1

    percent = round(len(visible) / total * 100) if total > 0 else 0

    return SnapshotStats(
        total=total,
        visible=len(visible),
        percent_showing=percent,
        by_class=by_class,
    )
