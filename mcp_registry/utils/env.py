from __future__ import annotations

"""Helpers for loading environment configuration."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from mcp_registry.config import (DEFAULT_CACHE_ENABLED,
                                 DEFAULT_SYNC_INTERVAL_SECONDS)

_ENV_LOADED = False

_LOGGER = logging.getLogger(__name__)

ENV_CACHE_ENABLED = "MCP_CACHE_ENABLED"
ENV_SYNC_INTERVAL = "MCP_CACHE_SYNC_INTERVAL"
ENV_CACHE_MAX_ENTRIES = "MCP_CACHE_MAX_ENTRIES"


def load_dotenv(dotenv_path: Union[str, Path] = ".env") -> None:
    """Load environment variables from a simple ``.env`` file if present."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return

    path = Path(dotenv_path)
    if path.exists():
        for line in path.read_text().splitlines():
            parsed = _parse_line(line)
            if parsed:
                key, value = parsed
                os.environ.setdefault(key, value)

    _ENV_LOADED = True


def _parse_line(line: str) -> Optional[Tuple[str, str]]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    if "=" not in stripped:
        return None

    key, value = stripped.split("=", 1)
    return (key.strip(), value.strip())


def _truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    lowered = value.strip().lower()
    return lowered in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class IndexSettings:
    """Runtime switches for the cache-aside server index."""

    cache_enabled: bool = DEFAULT_CACHE_ENABLED
    sync_interval_seconds: float = DEFAULT_SYNC_INTERVAL_SECONDS
    max_entries: Optional[int] = None


def load_index_settings() -> IndexSettings:
    """Read cache settings from the environment, falling back to defaults.

    ``MCP_CACHE_ENABLED`` toggles the in-memory cache,
    ``MCP_CACHE_SYNC_INTERVAL`` sets the resync period in seconds and
    ``MCP_CACHE_MAX_ENTRIES`` bounds the cache size (unset means unbounded).
    """

    load_dotenv()
    raw_enabled = os.environ.get(ENV_CACHE_ENABLED)
    enabled = (
        DEFAULT_CACHE_ENABLED if raw_enabled is None else _truthy(raw_enabled)
    )
    interval = _read_positive_float(
        os.environ.get(ENV_SYNC_INTERVAL), DEFAULT_SYNC_INTERVAL_SECONDS
    )
    max_entries: Optional[int] = None
    raw_max = os.environ.get(ENV_CACHE_MAX_ENTRIES)
    if raw_max:
        try:
            parsed = int(raw_max)
        except ValueError:
            _LOGGER.warning(
                "Ignoring non-numeric %s=%r", ENV_CACHE_MAX_ENTRIES, raw_max
            )
        else:
            max_entries = parsed if parsed > 0 else None
    return IndexSettings(
        cache_enabled=enabled,
        sync_interval_seconds=interval,
        max_entries=max_entries,
    )


def _read_positive_float(raw: Optional[str], default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        _LOGGER.warning("Ignoring non-numeric interval %r", raw)
        return default
    if value <= 0:
        return default
    return value
