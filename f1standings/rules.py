from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


RACE = "race"
SPRINT = "sprint"
SESSION_NAMES = {"Race": RACE, "Sprint": SPRINT}

# Index 0 is rank 1. Ranks past the end of a table score nothing.
RACE_POINTS: Tuple[int, ...] = (25, 18, 15, 12, 10, 8, 6, 4, 2, 1)
SPRINT_POINTS: Tuple[int, ...] = (8, 7, 6, 5, 4, 3, 2, 1)

PODIUM_RANKS = (1, 2, 3)
UNKNOWN_TEAM = "Unknown"
UNKNOWN_NATIONALITY = "UNK"

RankedEntry = Tuple[int, int]  # (driver_number, dense rank)


@dataclass(frozen=True)
class SessionInfo:
    session_key: int
    kind: str
    date_start: datetime


@dataclass(frozen=True)
class RawResult:
    session_key: int
    driver_number: int
    position: Optional[int]
    dns: bool = False
    dsq: bool = False


@dataclass(frozen=True)
class DriverMeta:
    driver_number: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    country_code: Optional[str] = None
    team_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or f"#{self.driver_number}"


@dataclass
class DriverTotals:
    points: int = 0
    wins: int = 0
    sprint_wins: int = 0
    podiums: int = 0


@dataclass(frozen=True)
class DriverStanding:
    position: int
    driver_number: int
    driver: str
    nationality: str
    team: str
    points: int
    wins: int
    sprint_wins: int
    podiums: int


def session_kind(session_name: str) -> Optional[str]:
    """
    Map an OpenF1 session name to a scored kind; None for anything else.
    """
    return SESSION_NAMES.get(session_name)


def scoring_table(kind: str) -> Tuple[int, ...]:
    return SPRINT_POINTS if kind == SPRINT else RACE_POINTS


def points_for_rank(rank: int, kind: str) -> int:
    table = scoring_table(kind)
    if 1 <= rank <= len(table):
        return table[rank - 1]
    return 0


def normalize_team_tokens(teams: Iterable[str]) -> List[str]:
    tokens = [t.strip().lower() for t in teams]
    return [t for t in tokens if t]


def is_excluded(
    driver_number: int,
    team_name: str,
    excluded_numbers: Iterable[int],
    team_tokens: Sequence[str],
) -> bool:
    """
    Team tokens are matched as case-insensitive substrings,
    so "red bull" excludes "Red Bull Racing".
    """
    if driver_number in excluded_numbers:
        return True
    team_lower = team_name.lower()
    return any(token in team_lower for token in team_tokens)


def order_sessions_chronologically(sessions: Sequence[SessionInfo]) -> List[SessionInfo]:
    # sorted() is stable, so equal start times keep their input order.
    return sorted(sessions, key=lambda s: s.date_start)


def latest_metadata_by_driver(
    sessions_asc: Sequence[SessionInfo],
    meta_by_session: Mapping[int, Mapping[int, DriverMeta]],
) -> Dict[int, DriverMeta]:
    """
    Walk sessions oldest first and let every snapshot overwrite the previous
    one, leaving the snapshot from the last session each driver appeared in.
    """
    latest: Dict[int, DriverMeta] = {}
    for session in sessions_asc:
        for driver_number, meta in meta_by_session.get(session.session_key, {}).items():
            latest[driver_number] = meta
    return latest


def resolve_team(
    driver_number: int,
    session_meta: Mapping[int, DriverMeta],
    latest_meta: Mapping[int, DriverMeta],
) -> str:
    meta = session_meta.get(driver_number) or latest_meta.get(driver_number)
    if meta is None or not meta.team_name:
        return UNKNOWN_TEAM
    return meta.team_name


def is_classified(result: RawResult) -> bool:
    if result.dns or result.dsq:
        return False
    return result.position is not None and result.position > 0


def rerank_session(
    results: Sequence[RawResult],
    session_meta: Mapping[int, DriverMeta],
    latest_meta: Mapping[int, DriverMeta],
    excluded_numbers: Iterable[int] = (),
    team_tokens: Sequence[str] = (),
) -> List[RankedEntry]:
    """
    Drop unclassified and excluded results, then hand out dense ranks
    1..K in raw finishing order.
    """
    excluded = set(excluded_numbers)
    survivors = [
        r
        for r in results
        if is_classified(r)
        and not is_excluded(
            r.driver_number,
            resolve_team(r.driver_number, session_meta, latest_meta),
            excluded,
            team_tokens,
        )
    ]
    # is_classified guarantees a position here.
    survivors.sort(key=lambda r: r.position)
    return [(r.driver_number, rank) for rank, r in enumerate(survivors, start=1)]


def accumulate_session(
    totals: Dict[int, DriverTotals],
    ranked: Sequence[RankedEntry],
    kind: str,
) -> None:
    for driver_number, rank in ranked:
        agg = totals.setdefault(driver_number, DriverTotals())
        agg.points += points_for_rank(rank, kind)
        if rank == 1:
            if kind == SPRINT:
                agg.sprint_wins += 1
            else:
                agg.wins += 1
        if rank in PODIUM_RANKS:
            agg.podiums += 1


def rank_standings(
    totals: Mapping[int, DriverTotals],
    latest_meta: Mapping[int, DriverMeta],
) -> List[DriverStanding]:
    """
    Order by points descending. Equal points keep the insertion order of
    ``totals``, which is the order drivers first scored a counted result.
    """
    ordered = sorted(totals.items(), key=lambda item: -item[1].points)
    standings: List[DriverStanding] = []
    for position, (driver_number, agg) in enumerate(ordered, start=1):
        meta = latest_meta.get(driver_number)
        standings.append(
            DriverStanding(
                position=position,
                driver_number=driver_number,
                driver=meta.display_name if meta else f"#{driver_number}",
                nationality=(meta.country_code if meta else None) or UNKNOWN_NATIONALITY,
                team=(meta.team_name if meta else None) or UNKNOWN_TEAM,
                points=agg.points,
                wins=agg.wins,
                sprint_wins=agg.sprint_wins,
                podiums=agg.podiums,
            )
        )
    return standings


def build_standings(
    sessions: Sequence[SessionInfo],
    results: Iterable[RawResult],
    driver_meta: Iterable[Tuple[int, DriverMeta]],
    exclude_teams: Iterable[str] = (),
    exclude_driver_numbers: Iterable[int] = (),
) -> List[DriverStanding]:
    """
    Full season pipeline over already loaded rows.

    ``driver_meta`` yields (session_key, snapshot) pairs. Results or
    snapshots for sessions not in ``sessions`` are ignored.
    """
    team_tokens = normalize_team_tokens(exclude_teams)
    excluded_numbers = set(exclude_driver_numbers)
    session_keys = {s.session_key for s in sessions}

    meta_by_session: Dict[int, Dict[int, DriverMeta]] = {}
    for session_key, meta in driver_meta:
        if session_key in session_keys:
            meta_by_session.setdefault(session_key, {})[meta.driver_number] = meta

    results_by_session: Dict[int, List[RawResult]] = {}
    for r in results:
        if r.session_key in session_keys:
            results_by_session.setdefault(r.session_key, []).append(r)

    sessions_asc = order_sessions_chronologically(sessions)
    latest_meta = latest_metadata_by_driver(sessions_asc, meta_by_session)

    totals: Dict[int, DriverTotals] = {}
    for session in sessions_asc:
        ranked = rerank_session(
            results_by_session.get(session.session_key, []),
            meta_by_session.get(session.session_key, {}),
            latest_meta,
            excluded_numbers,
            team_tokens,
        )
        accumulate_session(totals, ranked, session.kind)

    return rank_standings(totals, latest_meta)
