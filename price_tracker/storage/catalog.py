# price_tracker/storage/catalog.py

"""SQLite-backed catalog of tracked products."""

import logging
import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from price_tracker.config.settings import Settings
from price_tracker.models.errors import CatalogError
from price_tracker.models.product import TrackedProduct

logger = logging.getLogger("price_tracker.catalog")

# Amazon tracking params that vary per session
_TRACKING_PARAMS: frozenset[str] = frozenset({
    "ref", "ref_", "dib", "dib_tag", "qid", "sr", "spc",
    "sp_csd", "xpid", "aref", "sp_cr", "psc", "smid",
    "keywords", "pd_rd_i", "pd_rd_r", "pd_rd_w",
    "pd_rd_wg", "pf_rd_i", "pf_rd_m", "pf_rd_p",
    "pf_rd_r", "pf_rd_s", "pf_rd_t", "th", "crid",
    "sprefix", "linkcode", "tag",
})

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS tracked_products (
    id       INTEGER PRIMARY KEY AUTOINCREMENT,
    name     TEXT    NOT NULL UNIQUE,
    url      TEXT    NOT NULL,
    added_at TEXT    NOT NULL
);
"""


def normalize_url(raw_url: str) -> str:
    """Strip tracking/session query params to get a stable product URL."""
    parsed = urlparse(raw_url.strip())

    # Amazon path-based tracking (e.g. /ref=sr_1_243)
    path = re.sub(r"/ref=[^/]*", "", parsed.path)

    params = parse_qs(parsed.query, keep_blank_values=True)
    cleaned = {
        k: v for k, v in params.items()
        if k.lower() not in _TRACKING_PARAMS
    }
    new_query = urlencode(cleaned, doseq=True) if cleaned else ""
    return urlunparse((
        parsed.scheme,
        parsed.netloc,
        path,
        parsed.params,
        new_query,
        "",  # drop fragment
    ))


def is_valid_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def load_url_file(path: Path) -> list[str]:
    """Read one URL per line, skipping blanks, comments and bad URLs."""
    urls: list[str] = []
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            candidate = line.strip()
            if not candidate or candidate.startswith("#"):
                continue
            if not is_valid_url(candidate):
                logger.warning(
                    "Skipping malformed URL on line %d of %s: %s",
                    lineno,
                    path,
                    candidate,
                )
                continue
            urls.append(candidate)
    logger.info("Loaded %d URLs from %s", len(urls), path)
    return urls


class Catalog:
    """Add, remove and list the products whose prices are tracked."""

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.PRICE_DB_PATH
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path))
        self._conn.executescript(_SCHEMA)
        logger.debug("Catalog opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def add(self, product: TrackedProduct) -> TrackedProduct:
        """Insert *product*, returning it with a normalised URL.

        Raises:
            CatalogError: The URL is not absolute http(s), the name is
                blank, or the name is already tracked.
        """
        name = product.name.strip()
        if not name:
            raise CatalogError("product name must not be empty")
        if not is_valid_url(product.url):
            raise CatalogError(f"not an absolute http(s) URL: {product.url}")

        stored = TrackedProduct(name=name, url=normalize_url(product.url))
        try:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO tracked_products (name, url, added_at) "
                    "VALUES (?, ?, ?)",
                    (
                        stored.name,
                        stored.url,
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise CatalogError(f"'{name}' is already tracked") from exc
        logger.info("Tracking '%s' at %s", stored.name, stored.url)
        return stored

    def remove(self, name: str) -> bool:
        """Delete a product by name. Returns False if it was unknown."""
        with self._conn:
            cur = self._conn.execute(
                "DELETE FROM tracked_products WHERE name = ?", (name,),
            )
        removed = cur.rowcount > 0
        if removed:
            logger.info("Stopped tracking '%s'", name)
        return removed

    def get(self, name: str) -> TrackedProduct | None:
        """Look up a product by name."""
        row = self._conn.execute(
            "SELECT name, url FROM tracked_products WHERE name = ?",
            (name,),
        ).fetchone()
        return TrackedProduct(name=row[0], url=row[1]) if row else None

    def list_products(self) -> list[TrackedProduct]:
        """Return every tracked product, ordered by name."""
        rows = self._conn.execute(
            "SELECT name, url FROM tracked_products ORDER BY name",
        ).fetchall()
        return [TrackedProduct(name=r[0], url=r[1]) for r in rows]
