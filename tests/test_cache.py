from datetime import datetime

import pytest
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker

from f1standings import cache as cache_module
from f1standings.cache import StandingsCache, cache_key, cached_season_standings
from f1standings.database import Base
from f1standings.exceptions import NoDataError
from f1standings.models import RaceSession, SessionResult
from f1standings.schemas import StandingsFilter


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _session() -> Session:
    engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=True, autocommit=False)
    return SessionLocal()


def _seed(db: Session) -> None:
    start = datetime(2025, 3, 16, 4, 0)
    db.add(
        RaceSession(
            session_key=9693,
            meeting_key=1254,
            location="Melbourne",
            date_start=start,
            date_end=start,
            session_type="Race",
            session_name="Race",
            country_key=5,
            country_code="AUS",
            country_name="Australia",
            circuit_key=10,
            circuit_short_name="Melbourne",
            gmt_offset="11:00:00",
            year=2025,
        )
    )
    for pos, number in enumerate([4, 1, 63], start=1):
        db.add(SessionResult(session_key=9693, driver_number=number, position=pos, meeting_key=1254))
    db.commit()


def test_cache_key_is_canonical():
    a = StandingsFilter(exclude_teams=["McLaren", "red bull"], exclude_driver_numbers=[44, 1], year=2025)
    b = StandingsFilter(exclude_teams=["Red Bull ", "mclaren", ""], exclude_driver_numbers=[1, 44, 1], year=2025)
    c = StandingsFilter(exclude_teams=["McLaren"], exclude_driver_numbers=[44, 1], year=2025)
    assert cache_key(a) == cache_key(b)
    assert cache_key(a) != cache_key(c)
    assert cache_key(StandingsFilter()) != cache_key(StandingsFilter(year=2025))


def test_hit_returns_stored_result_without_reading_store():
    db = _session()
    _seed(db)
    cache = StandingsCache(ttl=60, clock=_Clock())
    f = StandingsFilter()

    first = cached_season_standings(db, f, cache=cache)
    db.execute(delete(SessionResult))
    db.commit()
    second = cached_season_standings(db, f, cache=cache)

    assert second is first
    assert [s.driver_number for s in second[1]] == [4, 1, 63]
    db.close()


def test_expired_entry_is_recomputed():
    db = _session()
    _seed(db)
    clock = _Clock()
    cache = StandingsCache(ttl=60, clock=clock)
    f = StandingsFilter(exclude_teams=["Ferrari"])

    cached_season_standings(db, f, cache=cache)
    db.execute(delete(SessionResult))
    db.commit()

    clock.now += 59
    assert len(cached_season_standings(db, f, cache=cache)[1]) == 3
    clock.now += 1
    assert cached_season_standings(db, f, cache=cache)[1] == []
    db.close()


def test_invalidate_drops_every_entry():
    db = _session()
    _seed(db)
    cache = StandingsCache(ttl=3600, clock=_Clock())
    cached_season_standings(db, StandingsFilter(), cache=cache)
    cached_season_standings(db, StandingsFilter(exclude_driver_numbers=[4]), cache=cache)
    assert len(cache) == 2

    assert cache.invalidate() == 2
    assert len(cache) == 0
    assert cache.get(cache_key(StandingsFilter())) is None
    db.close()


def test_errors_are_not_cached():
    db = _session()
    cache = StandingsCache(ttl=3600, clock=_Clock())
    with pytest.raises(NoDataError):
        cached_season_standings(db, StandingsFilter(), cache=cache)
    assert len(cache) == 0

    _seed(db)
    year, standings = cached_season_standings(db, StandingsFilter(), cache=cache)
    assert year == 2025
    assert standings[0].points == 25
    db.close()


def test_invalidate_during_compute_is_not_overwritten(monkeypatch):
    db = _session()
    _seed(db)
    cache = StandingsCache(ttl=3600, clock=_Clock())
    compute = cache_module.season_standings

    def compute_then_import(db, standings_filter):
        value = compute(db, standings_filter)
        # An import lands while the table is being built.
        cache.invalidate()
        return value

    monkeypatch.setattr(cache_module, "season_standings", compute_then_import)
    year, standings = cached_season_standings(db, StandingsFilter(), cache=cache)
    assert (year, [s.driver_number for s in standings]) == (2025, [4, 1, 63])
    assert len(cache) == 0

    monkeypatch.setattr(cache_module, "season_standings", compute)
    cached_season_standings(db, StandingsFilter(), cache=cache)
    assert len(cache) == 1
    db.close()


def test_set_with_stale_generation_is_rejected():
    cache = StandingsCache(ttl=60, clock=_Clock())
    generation = cache.generation
    cache.invalidate()
    assert cache.set("k", (2025, []), generation=generation) is False
    assert cache.set("k", (2025, []), generation=cache.generation) is True
    assert cache.get("k") == (2025, [])
