"""Deduplication logic - Pure functions.

Feeds cover overlapping time windows, so the same physical event shows up
in several batches. Merging keeps the first occurrence of each ID, in the
order the batches are given (endpoint declaration order), never in network
completion order.
"""

from typing import Iterable

from src.core.earthquake import Event


def dedupe_events(events: Iterable[Event]) -> list[Event]:
    """Remove repeated IDs, keeping the first occurrence.

    Pure function.

    Args:
        events: Events in precedence order

    Returns:
        Events with unique IDs, original relative order preserved
    """
    seen: set[str] = set()
    unique = []

    for event in events:
        if event.id in seen:
            continue
        seen.add(event.id)
        unique.append(event)

    return unique


def merge_batches(batches: Iterable[Iterable[Event]]) -> list[Event]:
    """Concatenate batches and deduplicate by event ID.

    Pure function.

    Args:
        batches: Per-endpoint event batches in endpoint declaration order

    Returns:
        Merged events, first-seen wins
    """
    return dedupe_events(event for batch in batches for event in batch)
