# price_tracker/scrapers/fetcher.py

"""Timeout-bounded HTTP fetcher with a fixed browser header profile."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests
from curl_cffi.requests import exceptions as curl_exceptions

from price_tracker.config.settings import Settings
from price_tracker.models.errors import (
    FetchHttpStatusError,
    FetchNetworkError,
    FetchTimeout,
)
from price_tracker.models.observation import RawPage

logger = logging.getLogger("price_tracker.fetcher")

# Statuses that usually mean a bot challenge rather than a real error
_CHALLENGE_STATUSES: frozenset[int] = frozenset({403, 503})


def utc_now() -> datetime:
    """Default clock: the current UTC instant."""
    return datetime.now(timezone.utc)


class Fetcher:
    """Fetch listing pages through one shared, read-only session.

    The session (connection pool, cookie jar, TLS fingerprint) is built
    once and reused by every concurrent fetch of a run; nothing here
    mutates its configuration after construction.
    """

    def __init__(
        self,
        session: Any | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        clock: Callable[[], datetime] = utc_now,
        cloudscraper_fallback: bool | None = None,
    ) -> None:
        self.session = session or curl_requests.Session(
            impersonate=Settings.IMPERSONATE_BROWSER
        )
        self.timeout: float = (
            timeout if timeout is not None else Settings.REQUEST_TIMEOUT
        )
        self._headers: dict[str, str] = dict(
            headers or Settings.DEFAULT_HEADERS
        )
        self._clock = clock
        self._fallback = (
            Settings.CLOUDSCRAPER_FALLBACK
            if cloudscraper_fallback is None
            else cloudscraper_fallback
        )

    def headers_for(self, url: str) -> dict[str, str]:
        """Return the header profile with ``Host`` set for *url*."""
        return {**self._headers, "Host": urlparse(url).netloc}

    def fetch(self, url: str) -> RawPage:
        """GET *url* and return its body decoded as UTF-8.

        Raises:
            FetchTimeout: The request exceeded ``self.timeout``.
            FetchNetworkError: Transport level failure.
            FetchHttpStatusError: Any status other than 200.
        """
        headers = self.headers_for(url)
        logger.debug("GET %s (timeout=%ss)", url, self.timeout)
        try:
            resp = self.session.get(
                url, headers=headers, timeout=self.timeout,
            )
        except curl_exceptions.Timeout as exc:
            logger.warning("Timeout after %ss: %s", self.timeout, url)
            raise FetchTimeout(
                url, f"timed out after {self.timeout}s"
            ) from exc
        except curl_exceptions.RequestException as exc:
            logger.warning("Request error for %s: %s", url, exc)
            raise FetchNetworkError(url, str(exc)) from exc

        if resp.status_code == 200:
            return self._page(url, resp.content)

        logger.warning("HTTP %d for %s", resp.status_code, url)
        if self._fallback and resp.status_code in _CHALLENGE_STATUSES:
            body = self._fetch_fallback(url, headers)
            if body is not None:
                return self._page(url, body)
        raise FetchHttpStatusError(url, resp.status_code)

    def _fetch_fallback(
        self, url: str, headers: dict[str, str],
    ) -> bytes | None:
        """Single attempt through cloudscraper (JS challenge solver)."""
        logger.info("Falling back to cloudscraper for %s", url)
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            resp: Any = scraper.get(
                url, headers=headers, timeout=self.timeout,
            )
        except Exception as exc:
            logger.error(
                "cloudscraper fallback failed for %s: %s",
                url,
                exc,
                exc_info=True,
            )
            return None
        if resp.status_code != 200:
            logger.warning(
                "cloudscraper fallback got HTTP %d for %s",
                resp.status_code,
                url,
            )
            return None
        content: bytes = resp.content
        return content

    def _page(self, url: str, content: bytes) -> RawPage:
        return RawPage(
            url=url,
            body=content.decode("utf-8", errors="replace"),
            fetched_at=self._clock(),
        )

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
