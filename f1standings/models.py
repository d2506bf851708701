from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from f1standings.database import Base


class RaceSession(Base):
    __tablename__ = "sessions"

    session_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    meeting_key: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[str] = mapped_column(String(128), nullable=False)
    date_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    date_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    session_type: Mapped[str] = mapped_column(String(32), nullable=False)
    session_name: Mapped[str] = mapped_column(String(64), nullable=False)  # Race / Sprint
    country_key: Mapped[int] = mapped_column(Integer, nullable=False)
    country_code: Mapped[str] = mapped_column(String(8), nullable=False)
    country_name: Mapped[str] = mapped_column(String(128), nullable=False)
    circuit_key: Mapped[int] = mapped_column(Integer, nullable=False)
    circuit_short_name: Mapped[str] = mapped_column(String(128), nullable=False)
    gmt_offset: Mapped[str] = mapped_column(String(16), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    results: Mapped[list["SessionResult"]] = relationship(
        "SessionResult", back_populates="session", cascade="all, delete-orphan"
    )
    drivers: Mapped[list["Driver"]] = relationship(
        "Driver", back_populates="session", cascade="all, delete-orphan"
    )


class SessionResult(Base):
    __tablename__ = "session_results"

    session_key: Mapped[int] = mapped_column(
        ForeignKey("sessions.session_key", ondelete="CASCADE"), primary_key=True
    )
    driver_number: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)  # null = unclassified
    number_of_laps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dnf: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dns: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dsq: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    gap_to_leader: Mapped[float | None] = mapped_column(Float, nullable=True)
    meeting_key: Mapped[int] = mapped_column(Integer, nullable=False)

    session: Mapped[RaceSession] = relationship("RaceSession", back_populates="results")


class Driver(Base):
    """Driver snapshot as published for one session."""

    __tablename__ = "drivers"

    session_key: Mapped[int] = mapped_column(
        ForeignKey("sessions.session_key", ondelete="CASCADE"), primary_key=True
    )
    driver_number: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    meeting_key: Mapped[int] = mapped_column(Integer, nullable=False)
    broadcast_name: Mapped[str] = mapped_column(String(128), nullable=False)
    country_code: Mapped[str] = mapped_column(String(8), nullable=False)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    full_name: Mapped[str] = mapped_column(String(256), nullable=False)
    headshot_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    name_acronym: Mapped[str] = mapped_column(String(8), nullable=False)
    team_colour: Mapped[str] = mapped_column(String(16), nullable=False)
    team_name: Mapped[str] = mapped_column(String(128), nullable=False)

    session: Mapped[RaceSession] = relationship("RaceSession", back_populates="drivers")
