# price_tracker/storage/observation_store.py

"""Append-only, time-ordered storage of price observations."""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from price_tracker.config.settings import Settings
from price_tracker.models.errors import StoreError
from price_tracker.models.observation import Price, PriceObservation
from price_tracker.scrapers.normalizer import from_storage, to_storage

logger = logging.getLogger("price_tracker.store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS price_observations (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id  TEXT    NOT NULL,
    observed_at TEXT    NOT NULL,
    value       TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_observations_product_time
    ON price_observations(product_id, observed_at);
"""


def to_utc(moment: datetime) -> datetime:
    """Return an aware *moment* converted to UTC.

    Raises:
        ValueError: *moment* is naive.
    """
    if moment.tzinfo is None or moment.utcoffset() is None:
        msg = f"timestamp must be timezone-aware: {moment.isoformat()}"
        raise ValueError(msg)
    return moment.astimezone(timezone.utc)


def _format_ts(moment: datetime) -> str:
    # Fixed width so lexical order equals chronological order
    return to_utc(moment).isoformat(timespec="microseconds")


class ObservationStore(ABC):
    """Storage port for price observations, keyed by product id."""

    @abstractmethod
    def append(self, product_id: str, observation: PriceObservation) -> None:
        """Persist one observation. Duplicate timestamps are accepted."""
        ...

    @abstractmethod
    def history(self, product_id: str) -> list[PriceObservation]:
        """Return every observation for a product, oldest first."""
        ...

    @abstractmethod
    def all(self) -> list[PriceObservation]:
        """Return the latest observation of every product."""
        ...

    @abstractmethod
    def purge(self, product_id: str) -> int:
        """Delete a product's whole history. Returns rows removed."""
        ...

    def close(self) -> None:
        """Release any held resources."""

    def trend_summary(
        self, product_id: str,
    ) -> dict[str, object] | None:
        """Compute min / max / latest price for a product.

        Sold-out readings are counted but never enter the numeric
        statistics.  Returns ``None`` for an unknown product.
        """
        observations = self.history(product_id)
        if not observations:
            return None
        prices: list[Decimal] = [
            o.value.as_decimal()
            for o in observations
            if isinstance(o.value, Price)
        ]
        return {
            "count": len(observations),
            "sold_out_count": len(observations) - len(prices),
            "min": min(prices) if prices else None,
            "max": max(prices) if prices else None,
            "latest": observations[-1].value,
            "last_observed": observations[-1].observed_at,
        }


class SQLiteObservationStore(ObservationStore):
    """Single-file SQLite backend for the observation store."""

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.PRICE_DB_PATH
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(
                str(path), check_same_thread=False,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open store at {path}: {exc}") from exc
        self._lock = threading.Lock()
        logger.debug("SQLiteObservationStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Recording ────────────────────────────────────────

    def append(self, product_id: str, observation: PriceObservation) -> None:
        """Insert one row in its own transaction.

        Raises:
            StoreError: The write failed or ``observed_at`` is naive.
        """
        try:
            ts = _format_ts(observation.observed_at)
        except ValueError as exc:
            raise StoreError(
                f"append rejected for '{product_id}': {exc}"
            ) from exc
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    "INSERT INTO price_observations "
                    "(product_id, observed_at, value) VALUES (?, ?, ?)",
                    (product_id, ts, to_storage(observation.value)),
                )
        except sqlite3.Error as exc:
            raise StoreError(
                f"append failed for '{product_id}': {exc}"
            ) from exc
        logger.info(
            "Recorded %s for '%s' at %s",
            observation.value,
            product_id,
            ts,
        )

    def purge(self, product_id: str) -> int:
        """Remove every observation of *product_id*."""
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    "DELETE FROM price_observations WHERE product_id = ?",
                    (product_id,),
                )
        except sqlite3.Error as exc:
            raise StoreError(
                f"purge failed for '{product_id}': {exc}"
            ) from exc
        logger.info(
            "Purged %d observations for '%s'", cur.rowcount, product_id,
        )
        return cur.rowcount

    # ── Querying ─────────────────────────────────────────

    def _query(
        self, sql: str, params: tuple[object, ...] = (),
    ) -> list[PriceObservation]:
        try:
            with self._lock:
                rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"query failed: {exc}") from exc
        return [
            PriceObservation(
                product_id=r[0],
                observed_at=datetime.fromisoformat(r[1]),
                value=from_storage(r[2]),
            )
            for r in rows
        ]

    def history(self, product_id: str) -> list[PriceObservation]:
        """Return all observations for a product, oldest first."""
        return self._query(
            "SELECT product_id, observed_at, value "
            "FROM price_observations "
            "WHERE product_id = ? "
            "ORDER BY observed_at ASC, id ASC",
            (product_id,),
        )

    def all(self) -> list[PriceObservation]:
        """Return the most recent observation per product."""
        return self._query(
            "SELECT o.product_id, o.observed_at, o.value "
            "FROM price_observations o "
            "WHERE o.id = ("
            "    SELECT i.id FROM price_observations i "
            "    WHERE i.product_id = o.product_id "
            "    ORDER BY i.observed_at DESC, i.id DESC LIMIT 1"
            ") "
            "ORDER BY o.product_id ASC",
        )
