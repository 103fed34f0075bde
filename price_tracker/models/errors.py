# price_tracker/models/errors.py

"""Error taxonomy for the scrape pipeline.

Every per-item failure is a :class:`ScrapeError`.  Batch runs record
them against the failing item and carry on; single-item flows let
them propagate to the caller.
"""


class ScrapeError(Exception):
    """Base class for any failure while scraping one product."""

    retryable: bool = False

    @property
    def reason(self) -> str:
        """Short human-readable reason for logs and summaries."""
        return f"{type(self).__name__}: {self}"


class FetchError(ScrapeError):
    """The listing page could not be retrieved."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class FetchTimeout(FetchError):
    """The request exceeded the per-request timeout."""

    retryable = True


class FetchNetworkError(FetchError):
    """Connection, DNS or TLS level failure."""

    retryable = True


class FetchHttpStatusError(FetchError):
    """The server answered with a non-200 status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"HTTP {status_code} for {url}")
        self.status_code = status_code
        self.retryable = status_code == 429 or status_code >= 500


class ExtractionError(ScrapeError):
    """The markup did not contain any recognised element."""


class NormalizationError(ScrapeError):
    """Extracted price text is not a plain non-negative decimal."""

    def __init__(self, raw_text: str) -> None:
        super().__init__(f"unparseable price text {raw_text!r}")
        self.raw_text = raw_text


class StoreError(ScrapeError):
    """Reading or writing the observation store failed."""


class CatalogError(Exception):
    """A catalog entry was rejected (bad URL, duplicate name)."""
