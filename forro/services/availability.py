"""Polling helper that waits for a freshly deployed event page to go live."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
import logging
import os
import time

import httpx


LOGGER = logging.getLogger(__name__)

Duration = timedelta | float


def _seconds(value: Duration) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _load_seconds_from_env(variable_name: str, default: float) -> float:
    """Read a positive number of seconds from ``variable_name``."""

    raw_value = os.getenv(variable_name)
    if not raw_value:
        return default
    try:
        seconds = float(raw_value)
    except ValueError:
        LOGGER.warning("Ignoring invalid %s value: %r", variable_name, raw_value)
        return default
    if seconds <= 0:
        LOGGER.warning("Ignoring non-positive %s value: %r", variable_name, raw_value)
        return default
    return seconds


class PageAvailabilityPoller:
    """Issue GET requests against a URL until it answers ``200 OK``."""

    _TIMEOUT_ENV_VAR = "FORRO_PAGE_WAIT_TIMEOUT"
    _INTERVAL_ENV_VAR = "FORRO_PAGE_WAIT_INTERVAL"
    _DEFAULT_TIMEOUT = 300.0
    _DEFAULT_INTERVAL = 10.0
    _REQUEST_TIMEOUT = 10.0

    def __init__(
        self,
        *,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client or httpx.Client(timeout=self._REQUEST_TIMEOUT, follow_redirects=True)
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def default_timeout(cls) -> float:
        return _load_seconds_from_env(cls._TIMEOUT_ENV_VAR, cls._DEFAULT_TIMEOUT)

    @classmethod
    def default_interval(cls) -> float:
        return _load_seconds_from_env(cls._INTERVAL_ENV_VAR, cls._DEFAULT_INTERVAL)

    def wait(self, url: str, timeout: Duration, interval: Duration) -> None:
        """Block until ``url`` is reachable or raise :class:`TimeoutError`.

        Network failures are treated like any other non-200 answer: the page
        is simply not available yet.
        """

        interval_seconds = _seconds(interval)
        deadline = self._clock() + _seconds(timeout)

        while self._clock() < deadline:
            try:
                response = self._client.get(url)
            except httpx.HTTPError as exc:
                LOGGER.debug("Request to %s failed: %s", url, exc)
            else:
                if response.status_code == httpx.codes.OK:
                    LOGGER.info("Event page is live: %s", url)
                    return
                LOGGER.debug("Event page %s answered with status %s", url, response.status_code)

            LOGGER.info("Event page not available yet. Retrying in %ss...", interval_seconds)
            self._sleep(interval_seconds)

        raise TimeoutError("timed out waiting for the event page to become available")


__all__ = ["PageAvailabilityPoller"]
