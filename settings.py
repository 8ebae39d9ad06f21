from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Optional


_STRATEGY_ENV = "GREENHOUSE_STRATEGY"
_CLOCK_START_ENV = "GREENHOUSE_CLOCK_START"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_KNOWN_STRATEGIES = ("list", "map")


@dataclass(frozen=True)
class Settings:
    strategy: str
    clock_start: Optional[datetime]
    log_level: str


def _read_strategy(default: str) -> str:
    value = os.getenv(_STRATEGY_ENV)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate not in _KNOWN_STRATEGIES:
        return default
    return candidate


def _read_clock_start(default: Optional[datetime]) -> Optional[datetime]:
    value = os.getenv(_CLOCK_START_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        strategy=_read_strategy("list"),
        clock_start=_read_clock_start(None),
        log_level=_read_log_level("INFO"),
    )
