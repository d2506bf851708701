from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from f1standings.exceptions import NoDataError, NoSeasonDataError
from f1standings.models import Driver, RaceSession, SessionResult
from f1standings.rules import (
    SESSION_NAMES,
    DriverMeta,
    DriverStanding,
    RawResult,
    SessionInfo,
    build_standings,
    session_kind,
)
from f1standings.schemas import (
    OpenF1Driver,
    OpenF1Session,
    OpenF1SessionResult,
    StandingsFilter,
)
from f1standings.service_logging import log_service_call


def list_seasons(db: Session) -> list[int]:
    rows = db.scalars(select(RaceSession.year).distinct().order_by(RaceSession.year.asc())).all()
    return list(rows)


def latest_year(db: Session) -> int:
    value = db.scalar(select(func.max(RaceSession.year)))
    if value is None:
        raise NoDataError()
    return int(value)


def select_season_sessions(db: Session, year: Optional[int] = None) -> tuple[int, list[RaceSession]]:
    """
    Race and sprint sessions of ``year`` (latest stored year when omitted),
    in session_key order.
    """
    if year is None:
        year = latest_year(db)
    elif db.scalar(select(func.count(RaceSession.session_key))) == 0:
        raise NoDataError()

    rows = db.scalars(
        select(RaceSession)
        .where(
            RaceSession.year == year,
            RaceSession.session_name.in_(list(SESSION_NAMES)),
        )
        .order_by(RaceSession.session_key.asc())
    ).all()
    if not rows:
        raise NoSeasonDataError(year)
    return year, list(rows)


def _session_info(row: RaceSession) -> SessionInfo:
    return SessionInfo(
        session_key=row.session_key,
        kind=session_kind(row.session_name),
        date_start=row.date_start,
    )


def _raw_result(row: SessionResult) -> RawResult:
    return RawResult(
        session_key=row.session_key,
        driver_number=row.driver_number,
        position=row.position,
        dns=bool(row.dns),
        dsq=bool(row.dsq),
    )


def _driver_meta(row: Driver) -> DriverMeta:
    return DriverMeta(
        driver_number=row.driver_number,
        first_name=row.first_name,
        last_name=row.last_name,
        country_code=row.country_code,
        team_name=row.team_name,
    )


@log_service_call
def season_standings(db: Session, standings_filter: StandingsFilter) -> tuple[int, list[DriverStanding]]:
    year, season_sessions = select_season_sessions(db, standings_filter.year)
    session_keys = [s.session_key for s in season_sessions]

    results = db.scalars(
        select(SessionResult)
        .where(SessionResult.session_key.in_(session_keys))
        .order_by(SessionResult.session_key.asc(), SessionResult.driver_number.asc())
    ).all()
    driver_rows = db.scalars(
        select(Driver)
        .where(Driver.session_key.in_(session_keys))
        .order_by(Driver.session_key.asc(), Driver.driver_number.asc())
    ).all()

    standings = build_standings(
        sessions=[_session_info(s) for s in season_sessions],
        results=[_raw_result(r) for r in results],
        driver_meta=[(d.session_key, _driver_meta(d)) for d in driver_rows],
        exclude_teams=standings_filter.exclude_teams,
        exclude_driver_numbers=standings_filter.exclude_driver_numbers,
    )
    return year, standings


def compute_standings(db: Session, standings_filter: StandingsFilter) -> list[DriverStanding]:
    _, standings = season_standings(db, standings_filter)
    return standings


def standing_to_dict(standing: DriverStanding) -> dict[str, Any]:
    return {
        "position": standing.position,
        "driver_number": standing.driver_number,
        "driver": standing.driver,
        "nationality": standing.nationality,
        "team": standing.team,
        "points": standing.points,
        "wins": standing.wins,
        "sprint_wins": standing.sprint_wins,
        "podiums": standing.podiums,
    }


def _as_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def upsert_session(db: Session, payload: OpenF1Session) -> RaceSession:
    values = payload.model_dump()
    # Stored as naive UTC so session ordering never compares aware and naive values.
    values["date_start"] = _as_utc_naive(payload.date_start)
    values["date_end"] = _as_utc_naive(payload.date_end)
    existing = db.get(RaceSession, payload.session_key)
    if existing:
        for key, value in values.items():
            setattr(existing, key, value)
        return existing

    created = RaceSession(**values)
    db.add(created)
    return created


def upsert_driver(db: Session, payload: OpenF1Driver) -> Driver:
    values = {
        "meeting_key": payload.meeting_key,
        "broadcast_name": payload.broadcast_name or "",
        # API may publish a null country code; the column is not nullable.
        "country_code": payload.country_code or "UNK",
        "first_name": payload.first_name or "",
        "last_name": payload.last_name or "",
        "full_name": payload.full_name or "",
        "headshot_url": payload.headshot_url,
        "name_acronym": payload.name_acronym or "",
        "team_colour": payload.team_colour or "",
        "team_name": payload.team_name or "",
    }
    existing = db.get(Driver, (payload.session_key, payload.driver_number))
    if existing:
        for key, value in values.items():
            setattr(existing, key, value)
        return existing

    created = Driver(session_key=payload.session_key, driver_number=payload.driver_number, **values)
    db.add(created)
    return created


def upsert_session_result(db: Session, payload: OpenF1SessionResult) -> SessionResult:
    values = {
        "position": payload.position,
        "number_of_laps": payload.number_of_laps,
        "dnf": payload.dnf,
        "dns": payload.dns,
        "dsq": payload.dsq,
        "duration": payload.duration,
        "gap_to_leader": payload.gap_to_leader,
        "meeting_key": payload.meeting_key,
    }
    existing = db.get(SessionResult, (payload.session_key, payload.driver_number))
    if existing:
        for key, value in values.items():
            setattr(existing, key, value)
        return existing

    created = SessionResult(
        session_key=payload.session_key, driver_number=payload.driver_number, **values
    )
    db.add(created)
    return created
