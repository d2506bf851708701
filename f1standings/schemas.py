from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OpenF1Session(BaseModel):
    """Session record from the OpenF1 ``/sessions`` endpoint."""

    model_config = ConfigDict(frozen=True)

    session_key: int
    meeting_key: int
    location: str
    date_start: datetime
    date_end: datetime
    session_type: str
    session_name: str
    country_key: int
    country_code: str
    country_name: str
    circuit_key: int
    circuit_short_name: str
    gmt_offset: str
    year: int


class OpenF1Driver(BaseModel):
    """Driver snapshot from the OpenF1 ``/drivers`` endpoint."""

    model_config = ConfigDict(frozen=True)

    session_key: int
    meeting_key: int
    driver_number: int
    broadcast_name: Optional[str] = None
    country_code: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    headshot_url: Optional[str] = None
    name_acronym: Optional[str] = None
    team_colour: Optional[str] = None
    team_name: Optional[str] = None


class OpenF1SessionResult(BaseModel):
    """Classification row from the OpenF1 ``/session_result`` endpoint."""

    model_config = ConfigDict(frozen=True)

    session_key: int
    meeting_key: int
    driver_number: int
    position: Optional[int] = None
    number_of_laps: Optional[int] = None
    dnf: bool = False
    dns: bool = False
    dsq: bool = False
    duration: Optional[float] = None
    gap_to_leader: Optional[float] = None

    @field_validator("duration", "gap_to_leader", mode="before")
    @classmethod
    def _numeric_or_none(cls, value):
        # Lapped cars report strings like "+1 LAP"; qualifying reports lists.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value

    @field_validator("dnf", "dns", "dsq", mode="before")
    @classmethod
    def _null_flag(cls, value):
        return bool(value)


class StandingsFilter(BaseModel):
    exclude_teams: list[str] = Field(default_factory=list)
    exclude_driver_numbers: list[int] = Field(default_factory=list)
    year: Optional[int] = None


class DriverStandingOut(BaseModel):
    position: int
    driver_number: int
    driver: str
    nationality: str
    team: str
    points: int
    wins: int
    sprint_wins: int
    podiums: int


class StandingsOut(BaseModel):
    year: Optional[int] = None
    filters: StandingsFilter
    standings: list[DriverStandingOut]
