from __future__ import annotations

from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from f1standings.cache import cached_season_standings, invalidate_standings_cache
from f1standings.config import LOG_LEVEL
from f1standings.database import Base, engine, get_db
from f1standings.exceptions import StandingsError
from f1standings.schemas import StandingsFilter, StandingsOut
from f1standings.service_logging import configure_logging
from f1standings.services import list_seasons, standing_to_dict


app = FastAPI(
    title="F1.5 - Filtered Championship Standings",
    version="1.0.0",
    description=(
        "Driver standings recomputed from stored race and sprint results, "
        "optionally as if some teams or drivers never took part."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    configure_logging(LOG_LEVEL)
    Base.metadata.create_all(bind=engine)


def _split_csv(values: list[str]) -> list[str]:
    # Accept both ?exclude_teams=A&exclude_teams=B and ?exclude_teams=A,B
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/seasons")
def get_seasons(db: Session = Depends(get_db)) -> list[int]:
    return list_seasons(db)


@app.get("/standings", response_model=StandingsOut)
def get_standings(
    year: Optional[int] = Query(default=None, ge=1950),
    exclude_teams: list[str] = Query(default=[]),
    exclude_driver_numbers: list[int] = Query(default=[]),
    db: Session = Depends(get_db),
):
    standings_filter = StandingsFilter(
        year=year,
        exclude_teams=_split_csv(exclude_teams),
        exclude_driver_numbers=exclude_driver_numbers,
    )
    try:
        season, standings = cached_season_standings(db, standings_filter)
    except StandingsError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {
        "year": season,
        "filters": standings_filter,
        "standings": [standing_to_dict(s) for s in standings],
    }


@app.post("/standings/revalidate")
def revalidate_standings() -> dict[str, int]:
    return {"invalidated": invalidate_standings_cache()}
