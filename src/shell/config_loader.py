"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (FeedConfig, FeedEndpoint) are defined in src/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from src.core.config import (
    DEFAULT_FALLBACK_ENDPOINT,
    DEFAULT_PRIMARY_ENDPOINTS,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    FeedConfig,
    FeedEndpoint,
)
from src.core.earthquake import DEFAULT_KIND


logger = logging.getLogger(__name__)


def _resolve_value(value: Any) -> Any:
    """Resolve a ${VAR} placeholder from the environment.

    Args:
        value: Value to resolve (may be a ${...} placeholder)

    Returns:
        Resolved value, or the original if unresolvable
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _name_from_url(url: str) -> str:
    """Derive an endpoint name from a feed URL ('.../all_hour.geojson' -> 'all_hour')."""
    tail = url.rstrip("/").rsplit("/", 1)[-1]
    return tail.removesuffix(".geojson") or url


def _parse_endpoint(data: Any) -> FeedEndpoint:
    """Parse an endpoint from config data.

    Accepts either a bare URL string or a mapping with 'url' and optional 'name'.
    """
    if isinstance(data, str):
        url = _resolve_value(data)
        return FeedEndpoint(name=_name_from_url(url), url=url)

    url = _resolve_value(data["url"])
    return FeedEndpoint(
        name=str(data.get("name") or _name_from_url(url)),
        url=url,
    )


def load_config_from_dict(data: dict[str, Any]) -> FeedConfig:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed FeedConfig object
    """
    primaries = DEFAULT_PRIMARY_ENDPOINTS
    if "primary_endpoints" in data:
        primaries = tuple(_parse_endpoint(e) for e in data["primary_endpoints"] or [])

    fallback = DEFAULT_FALLBACK_ENDPOINT
    if data.get("fallback_endpoint"):
        fallback = _parse_endpoint(data["fallback_endpoint"])

    return FeedConfig(
        primary_endpoints=primaries,
        fallback_endpoint=fallback,
        refresh_interval_seconds=float(
            data.get("refresh_interval_seconds", DEFAULT_REFRESH_INTERVAL_SECONDS)
        ),
        request_timeout_seconds=float(
            data.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
        ),
        default_kind=data.get("default_kind") or DEFAULT_KIND,
        min_magnitude=float(data.get("min_magnitude", 0.0)),
    )


def load_config(config_path: str | Path | None = None) -> FeedConfig:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed FeedConfig object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return FeedConfig()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return FeedConfig()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: %d primary feeds, fallback %s, refresh every %.0fs",
        len(config.primary_endpoints),
        config.fallback_endpoint.name,
        config.refresh_interval_seconds,
    )

    return config


def load_config_from_env() -> FeedConfig:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        QUAKE_PRIMARY_FEEDS: Comma-separated feeds, each 'name=url' or a bare URL
        QUAKE_FALLBACK_FEED: Fallback feed, 'name=url' or a bare URL
        QUAKE_REFRESH_INTERVAL_SECONDS: Seconds between cycles
        QUAKE_REQUEST_TIMEOUT_SECONDS: Per-request timeout
        QUAKE_MIN_MAGNITUDE: Display threshold

    Returns:
        FeedConfig object from environment
    """
    def parse_spec(spec: str) -> FeedEndpoint:
        spec = spec.strip()
        name, sep, url = spec.partition("=")
        if not sep or "://" in name:
            return _parse_endpoint(spec)
        return FeedEndpoint(name=name.strip(), url=url.strip())

    primaries = DEFAULT_PRIMARY_ENDPOINTS
    feeds_str = os.environ.get("QUAKE_PRIMARY_FEEDS")
    if feeds_str:
        primaries = tuple(parse_spec(s) for s in feeds_str.split(",") if s.strip())

    fallback = DEFAULT_FALLBACK_ENDPOINT
    fallback_str = os.environ.get("QUAKE_FALLBACK_FEED")
    if fallback_str:
        fallback = parse_spec(fallback_str)

    return FeedConfig(
        primary_endpoints=primaries,
        fallback_endpoint=fallback,
        refresh_interval_seconds=float(os.environ.get(
            "QUAKE_REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS
        )),
        request_timeout_seconds=float(os.environ.get(
            "QUAKE_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS
        )),
        min_magnitude=float(os.environ.get("QUAKE_MIN_MAGNITUDE", "0")),
    )
