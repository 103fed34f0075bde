# tests/helpers.py

"""Fakes shared by the orchestrator and CLI tests."""

import threading
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

from price_tracker.models.errors import FetchError
from price_tracker.models.observation import RawPage

FIXTURES_DIR = Path(__file__).parent / "fixtures"

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def load_fixture(name: str) -> str:
    """Read an HTML fixture file."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


class FakeFetcher:
    """Serve canned pages or errors per URL, with a ticking clock.

    Each value in *pages* is either markup or a ``FetchError`` to
    raise.  Every successful fetch advances the clock by one minute.
    """

    def __init__(
        self,
        pages: dict[str, str | FetchError],
        delay: float = 0.0,
        start: datetime = T0,
    ) -> None:
        self.pages = pages
        self.delay = delay
        self.calls: list[str] = []
        self.max_in_flight = 0
        self._in_flight = 0
        self._now = start
        self._lock = threading.Lock()

    def fetch(self, url: str) -> RawPage:
        """Return the canned page for *url* or raise its error."""
        with self._lock:
            self.calls.append(url)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            page = self.pages[url]
            if isinstance(page, FetchError):
                raise page
            with self._lock:
                fetched_at = self._now
                self._now += timedelta(minutes=1)
            return RawPage(url=url, body=page, fetched_at=fetched_at)
        finally:
            with self._lock:
                self._in_flight -= 1
