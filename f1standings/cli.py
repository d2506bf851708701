"""Command line entry point: import OpenF1 data and print standings.

Examples:
    f1standings import-sessions --year 2025
    f1standings import-drivers --session-key 9928
    f1standings import-results --year 2025
    f1standings standings --exclude-team McLaren
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from f1standings.config import IMPORT_PAUSE_SECONDS, LOG_LEVEL
from f1standings.database import Base, SessionLocal, engine
from f1standings.exceptions import OpenF1Error, StandingsError
from f1standings.importer import import_drivers, import_session_results, import_sessions
from f1standings.openf1 import OpenF1Client
from f1standings.rules import DriverStanding
from f1standings.schemas import StandingsFilter
from f1standings.service_logging import configure_logging, get_logger
from f1standings.services import season_standings

logger = get_logger("cli")


def _season_year(value: str) -> int:
    try:
        year = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("Invalid year provided.") from None
    if year < 1950:
        raise argparse.ArgumentTypeError("Invalid year provided.")
    return year


def _session_key(value: str) -> int:
    try:
        key = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("Invalid session key provided.") from None
    if key <= 0:
        raise argparse.ArgumentTypeError("Invalid session key provided.")
    return key


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="f1standings",
        description="Import OpenF1 results and compute filtered championship standings.",
    )
    parser.add_argument("--log-level", default=LOG_LEVEL)
    sub = parser.add_subparsers(dest="command", required=True)

    p_sessions = sub.add_parser("import-sessions", help="Import race and sprint sessions for a year")
    p_sessions.add_argument("--year", type=_season_year, required=True)

    p_drivers = sub.add_parser("import-drivers", help="Import driver snapshots for one session")
    p_drivers.add_argument("--session-key", "--session_key", dest="session_key", type=_session_key, required=True)

    p_results = sub.add_parser("import-results", help="Import results for every stored session")
    p_results.add_argument("--year", type=_season_year, default=None)
    p_results.add_argument("--pause", type=float, default=IMPORT_PAUSE_SECONDS)

    p_standings = sub.add_parser("standings", help="Print the standings table")
    p_standings.add_argument("--year", type=_season_year, default=None)
    p_standings.add_argument("--exclude-team", dest="exclude_teams", action="append", default=[])
    p_standings.add_argument(
        "--exclude-driver", dest="exclude_driver_numbers", type=int, action="append", default=[]
    )
    return parser


def format_table(standings: Sequence[DriverStanding]) -> str:
    header = f"{'POS':>3}  {'DRIVER':<24} {'NAT':<4} {'TEAM':<26} {'PTS':>4} {'W':>3} {'SW':>3} {'POD':>4}"
    lines = [header, "-" * len(header)]
    for s in standings:
        lines.append(
            f"{s.position:>3}  {s.driver:<24} {s.nationality:<4} {s.team:<26} "
            f"{s.points:>4} {s.wins:>3} {s.sprint_wins:>3} {s.podiums:>4}"
        )
    return "\n".join(lines)


def run(args: argparse.Namespace) -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if args.command == "standings":
            standings_filter = StandingsFilter(
                year=args.year,
                exclude_teams=args.exclude_teams,
                exclude_driver_numbers=args.exclude_driver_numbers,
            )
            year, standings = season_standings(db, standings_filter)
            print(f"Season {year}")
            print(format_table(standings))
            return 0

        with OpenF1Client() as client:
            if args.command == "import-sessions":
                import_sessions(db, client, args.year)
            elif args.command == "import-drivers":
                import_drivers(db, client, args.session_key)
            elif args.command == "import-results":
                import_session_results(db, client, year=args.year, pause=args.pause)
        return 0
    finally:
        db.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return run(args)
    except (StandingsError, OpenF1Error) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
