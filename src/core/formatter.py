"""Text formatting - Pure functions.

This module formats events and snapshots into one-line summaries for
logs and console consumers. All functions are pure with no side effects.
"""

from src.core.earthquake import Event, MagnitudeClass
from src.core.snapshot import Snapshot, compute_stats


def get_severity_label(magnitude: float) -> str:
    """Get a human-readable severity label.

    Pure function.
    """
    if magnitude >= 6.0:
        return "MAJOR EARTHQUAKE"
    elif magnitude >= 4.0:
        return "LIGHT EARTHQUAKE"
    else:
        return "MINOR EARTHQUAKE"


def format_event_summary(event: Event) -> str:
    """Format a one-line summary of an event.

    Pure function.

    Args:
        event: Event to summarize

    Returns:
        One-line summary string
    """
    if event.time is not None:
        time_str = event.time.strftime("%Y-%m-%d %H:%M:%S UTC")
    else:
        time_str = "unknown time"

    depth_str = f"{event.depth:.1f}km" if event.depth is not None else "unknown"

    return (
        f"M{event.magnitude:.1f} - {event.place} "
        f"at {time_str} (depth: {depth_str})"
    )


def format_snapshot_summary(snapshot: Snapshot, min_magnitude: float = 0.0) -> str:
    """Format a one-line summary of a snapshot for a magnitude threshold.

    Pure function.

    Args:
        snapshot: Snapshot to summarize
        min_magnitude: Display threshold (inclusive)

    Returns:
        Summary such as
        "120 total, 30 visible (25%) at M>=4.0 [minor 0, light 25, major 5]"
    """
    stats = compute_stats(snapshot, min_magnitude)
    bands = ", ".join(
        f"{band.value} {stats.by_class.get(band, 0)}" for band in MagnitudeClass
    )
    summary = (
        f"{stats.total} total, {stats.visible} visible "
        f"({stats.percent_showing}%) at M>={min_magnitude:.1f} [{bands}]"
    )

    if snapshot.degraded:
        summary += " - fallback feed"
    elif snapshot.has_failures:
        names = ", ".join(f.name for f in snapshot.failed_endpoints)
        summary += f" - failed feeds: {names}"

    return summary
