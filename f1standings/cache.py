"""In-process TTL cache in front of the standings computation."""

from __future__ import annotations

import json
import threading
import time
from typing import Callable, Optional

from sqlalchemy.orm import Session

from f1standings.config import STANDINGS_CACHE_TTL
from f1standings.rules import DriverStanding
from f1standings.schemas import StandingsFilter
from f1standings.service_logging import get_logger
from f1standings.services import season_standings

logger = get_logger("cache")

SeasonTable = tuple[int, list[DriverStanding]]


def cache_key(standings_filter: StandingsFilter) -> str:
    """Canonical key: same filters in any order or letter case share an entry."""
    return json.dumps(
        {
            "year": standings_filter.year,
            "exclude_teams": sorted(t.strip().lower() for t in standings_filter.exclude_teams if t.strip()),
            "exclude_driver_numbers": sorted(set(standings_filter.exclude_driver_numbers)),
        },
        sort_keys=True,
    )


class StandingsCache:
    def __init__(self, ttl: float = STANDINGS_CACHE_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, SeasonTable]] = {}
        self._lock = threading.Lock()
        self._generation = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[SeasonTable]:
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                self._entries.pop(key, None)
                return None
            return value

    @property
    def generation(self) -> int:
        """Bumped by every invalidate()."""
        with self._lock:
            return self._generation

    def set(self, key: str, value: SeasonTable, generation: Optional[int] = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._entries[key] = (self._clock() + self.ttl, value)
            return True

    def invalidate(self) -> int:
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._generation += 1
        logger.info("Standings cache invalidated (%d entries dropped)", dropped)
        return dropped


standings_cache = StandingsCache()


def cached_season_standings(
    db: Session,
    standings_filter: StandingsFilter,
    cache: Optional[StandingsCache] = None,
) -> SeasonTable:
    cache = cache if cache is not None else standings_cache
    key = cache_key(standings_filter)
    hit = cache.get(key)
    if hit is not None:
        logger.debug("Standings cache hit: %s", key)
        return hit

    generation = cache.generation
    # Errors propagate and are never stored.
    value = season_standings(db, standings_filter)
    if not cache.set(key, value, generation=generation):
        logger.debug("Cache invalidated during compute; not storing %s", key)
    return value


def invalidate_standings_cache() -> int:
    return standings_cache.invalidate()
