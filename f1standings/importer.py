"""Jobs that copy OpenF1 sessions, drivers and results into the local store."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from f1standings.cache import invalidate_standings_cache
from f1standings.config import IMPORT_PAUSE_SECONDS
from f1standings.exceptions import OpenF1Error
from f1standings.models import RaceSession
from f1standings.openf1 import OpenF1Client
from f1standings.rules import SESSION_NAMES
from f1standings.schemas import OpenF1Driver, OpenF1Session, OpenF1SessionResult
from f1standings.service_logging import get_logger
from f1standings.services import upsert_driver, upsert_session, upsert_session_result

logger = get_logger("importer")

M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], raw: dict[str, Any]) -> Optional[M]:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        logger.error("Skipping invalid %s record %r: %s", model.__name__, raw, exc)
        return None


def _store(db: Session, upsert: Callable[[Session, M], object], payload: M) -> bool:
    """Write one record in its own transaction; a failing row is logged and skipped."""
    try:
        upsert(db, payload)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to upsert %s %r: %s", type(payload).__name__, payload, exc)
        return False
    return True


def _finish(db: Session, upserted: int) -> int:
    db.commit()
    if upserted:
        invalidate_standings_cache()
    return upserted


def import_sessions(db: Session, client: OpenF1Client, year: int) -> int:
    logger.info("Fetching sessions for %s ...", year)
    data = client.sessions(year=year)
    # session_type is "Race" for both grands prix and sprints.
    filtered = [s for s in data if s.get("session_type") in SESSION_NAMES]
    logger.info("Fetched %d sessions; importing %d (Race/Sprint).", len(data), len(filtered))

    upserted = 0
    for raw in filtered:
        payload = _parse(OpenF1Session, raw)
        if payload is None:
            continue
        if _store(db, upsert_session, payload):
            upserted += 1

    logger.info("Done. Upserted %d sessions.", upserted)
    return _finish(db, upserted)


def import_drivers(db: Session, client: OpenF1Client, session_key: int) -> int:
    if db.get(RaceSession, session_key) is None:
        logger.warning("Session %s is not stored; import sessions first.", session_key)

    logger.info("Fetching drivers for session_key=%s ...", session_key)
    data = client.drivers(session_key=session_key)

    upserted = 0
    for raw in data:
        payload = _parse(OpenF1Driver, raw)
        if payload is None:
            continue
        if _store(db, upsert_driver, payload):
            upserted += 1

    logger.info("Done. Upserted %d drivers.", upserted)
    return _finish(db, upserted)


def import_session_results(
    db: Session,
    client: OpenF1Client,
    year: Optional[int] = None,
    pause: float = IMPORT_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    query = select(RaceSession).order_by(RaceSession.date_start.asc(), RaceSession.session_key.asc())
    if year is not None:
        query = query.where(RaceSession.year == year)
    stored = db.scalars(query).all()
    if not stored:
        if year is not None:
            logger.warning("No sessions found in DB for year %s.", year)
        else:
            logger.warning("No sessions found in DB. Have you run import-sessions?")
        return 0

    logger.info("Found %d sessions. Importing results ...", len(stored))
    total = 0
    # Plain keys, since a rolled-back record expires the loaded rows.
    for session_key, session_name in [(s.session_key, s.session_name) for s in stored]:
        logger.info("Session %s (%s)", session_key, session_name)
        try:
            data = client.session_results(session_key=session_key)
        except OpenF1Error as exc:
            logger.error("Failed fetching results for session %s: %s", session_key, exc)
            continue

        if not data:
            logger.info("No results for session %s", session_key)
            continue

        upserted = 0
        for raw in data:
            payload = _parse(OpenF1SessionResult, raw)
            if payload is None:
                continue
            if _store(db, upsert_session_result, payload):
                upserted += 1
        total += upserted
        logger.info("Upserted %d results for session %s.", upserted, session_key)

        if pause > 0:
            sleep(pause)

    logger.info("Done. Upserted %d session results in total.", total)
    return _finish(db, total)
