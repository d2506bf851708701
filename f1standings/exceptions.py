"""Exceptions raised by the standings core and the OpenF1 transport."""

from __future__ import annotations


class StandingsError(Exception):
    """Base exception for standings computation errors."""


class NoDataError(StandingsError):
    """Raised when the store holds no sessions at all."""

    def __init__(self) -> None:
        super().__init__("No sessions found in DB. Run the import scripts first.")


class NoSeasonDataError(StandingsError):
    """Raised when the requested season has no race or sprint sessions."""

    def __init__(self, year: int) -> None:
        self.year = year
        super().__init__(f"No race/sprint sessions found for year {year}.")


class OpenF1Error(Exception):
    """Base exception for all OpenF1 client errors."""


class OpenF1ConnectionError(OpenF1Error):
    """Raised when the client cannot connect to the API."""


class OpenF1TimeoutError(OpenF1Error):
    """Raised when a request to the API times out."""


class OpenF1APIError(OpenF1Error):
    """Raised when the API returns an error response (4xx/5xx)."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


class OpenF1ValidationError(OpenF1Error):
    """Raised when an API response body cannot be decoded."""
