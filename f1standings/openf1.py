"""Synchronous OpenF1 client used by the import jobs."""

from __future__ import annotations

import random
import time
from typing import Any, Callable

import httpx

from f1standings.config import OPENF1_BASE_URL, OPENF1_JITTER, OPENF1_TIMEOUT
from f1standings.exceptions import (
    OpenF1APIError,
    OpenF1ConnectionError,
    OpenF1TimeoutError,
    OpenF1ValidationError,
)
from f1standings.service_logging import log_api_call


def _handle_response(response: httpx.Response) -> list[dict[str, Any]]:
    """Validate response status and return parsed JSON."""
    if response.status_code >= 400:
        raise OpenF1APIError(
            status_code=response.status_code,
            message=response.text,
        )
    try:
        data = response.json()
    except ValueError as exc:
        raise OpenF1ValidationError(f"Response is not JSON: {response.text[:200]!r}") from exc
    # The API answers an empty match with an object instead of a list.
    return data if isinstance(data, list) else []


class OpenF1Client:
    """Thin wrapper over httpx.Client for the endpoints the importers need.

    Usage:
        with OpenF1Client() as f1:
            sessions = f1.sessions(year=2025)

    ``jitter`` is the upper bound of a random sleep before each request,
    which keeps parallel imports from tripping the API rate limit.
    """

    def __init__(
        self,
        base_url: str = OPENF1_BASE_URL,
        timeout: float = OPENF1_TIMEOUT,
        jitter: float = OPENF1_JITTER,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self._jitter = jitter
        self._sleep = sleep

    def __enter__(self) -> OpenF1Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @log_api_call
    def get(self, endpoint: str, **params: Any) -> list[dict[str, Any]]:
        if self._jitter > 0:
            self._sleep(random.random() * self._jitter)
        try:
            response = self._client.get(endpoint, params=params)
        except httpx.ConnectError as exc:
            raise OpenF1ConnectionError(str(exc)) from exc
        except httpx.TimeoutException as exc:
            raise OpenF1TimeoutError(str(exc)) from exc
        except httpx.TransportError as exc:
            raise OpenF1ConnectionError(str(exc)) from exc
        return _handle_response(response)

    def sessions(self, year: int) -> list[dict[str, Any]]:
        return self.get("/sessions", year=year)

    def drivers(self, session_key: int) -> list[dict[str, Any]]:
        return self.get("/drivers", session_key=session_key)

    def session_results(self, session_key: int) -> list[dict[str, Any]]:
        return self.get("/session_result", session_key=session_key)
