"""Functional Core - Pure functions with no side effects.

This module contains all feed logic as pure functions:
- Event normalization
- Deduplication of overlapping feeds
- Snapshot statistics
- Text formatting
- Configuration validation

All functions here are deterministic and have no I/O.
"""

from src.core.earthquake import Event, normalize_feature, normalize_features
from src.core.dedup import merge_batches
from src.core.snapshot import Snapshot, compute_stats
from src.core.errors import (
    EndpointUnavailableError,
    EndpointUnreachableError,
    MalformedRecordError,
    NoDataAvailableError,
)

__all__ = [
    # Earthquake
    "Event",
    "normalize_feature",
    "normalize_features",
    # Dedup
    "merge_batches",
    # Snapshot
    "Snapshot",
    "compute_stats",
    # Errors
    "MalformedRecordError",
    "EndpointUnavailableError",
    "EndpointUnreachableError",
    "NoDataAvailableError",
]
