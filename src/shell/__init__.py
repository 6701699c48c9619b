"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- USGS feed client (HTTP)
- Fallback feed source (HTTP)
- Configuration loading (environment/files)

Keep this layer thin and simple. All feed logic should be in core.
"""

from src.shell.feed_client import FeedClient
from src.shell.fallback import FallbackSource
from src.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "FeedClient",
    "FallbackSource",
    "load_config",
    "load_config_from_env",
]
