# price_tracker/services/scrape_orchestrator.py

"""Bounded-concurrency fan-out of fetch, parse and normalise per product."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from price_tracker.config.settings import Settings
from price_tracker.models.errors import ExtractionError, ScrapeError
from price_tracker.models.observation import (
    NotFound,
    PriceObservation,
    RawPage,
)
from price_tracker.models.product import TrackedProduct
from price_tracker.scrapers.fetcher import Fetcher
from price_tracker.scrapers.normalizer import normalize
from price_tracker.scrapers.price_parser import PriceParser
from price_tracker.storage.observation_store import ObservationStore

logger = logging.getLogger("price_tracker.orchestrator")


class ItemState(Enum):
    """Progress of one product through a run."""

    PENDING = "pending"
    FETCHING = "fetching"
    PARSING = "parsing"
    NORMALIZING = "normalizing"
    OBSERVED = "observed"
    FAILED = "failed"


@dataclass
class ScrapeOutcome:
    """Result of scraping one product: an observation or an error."""

    product: TrackedProduct
    state: ItemState = ItemState.PENDING
    observation: PriceObservation | None = None
    error: ScrapeError | None = None

    @property
    def ok(self) -> bool:
        """True when the product was observed."""
        return self.state is ItemState.OBSERVED

    @property
    def retryable(self) -> bool:
        """Hint for a scheduler deciding what to re-run next cycle."""
        return self.error is not None and self.error.retryable


class ScrapeOrchestrator:
    """Scrape a batch of tracked products concurrently.

    At most ``max_concurrency`` fetches are in flight.  Each product
    succeeds or fails on its own; results always come back in input
    order.  Nothing is retried within a run.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        parser: PriceParser | None = None,
        store: ObservationStore | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.fetcher = fetcher or Fetcher()
        self.parser = parser or PriceParser()
        self.store = store
        self.max_concurrency = (
            Settings.MAX_CONCURRENCY
            if max_concurrency is None
            else max_concurrency
        )
        if self.max_concurrency < 1:
            msg = "max_concurrency must be at least 1"
            raise ValueError(msg)

    # ── Private helpers ──────────────────────────────────

    def _observe(
        self, product_id: str, page: RawPage, outcome: ScrapeOutcome,
    ) -> PriceObservation:
        """Parse and normalise synchronously; never suspends."""
        outcome.state = ItemState.PARSING
        extracted = self.parser.parse(page.body)
        if isinstance(extracted, NotFound):
            raise ExtractionError(extracted.reason)
        outcome.state = ItemState.NORMALIZING
        value = normalize(extracted)
        return PriceObservation(
            product_id=product_id,
            observed_at=page.fetched_at,
            value=value,
        )

    async def _scrape(
        self,
        product: TrackedProduct,
        outcome: ScrapeOutcome,
        semaphore: asyncio.Semaphore | None = None,
    ) -> PriceObservation:
        outcome.state = ItemState.FETCHING
        if semaphore is None:
            page = await asyncio.to_thread(self.fetcher.fetch, product.url)
        else:
            async with semaphore:
                page = await asyncio.to_thread(
                    self.fetcher.fetch, product.url
                )
        observation = self._observe(product.name, page, outcome)
        if self.store is not None:
            await asyncio.to_thread(
                self.store.append, product.name, observation
            )
        outcome.observation = observation
        outcome.state = ItemState.OBSERVED
        return observation

    async def _run_one(
        self,
        product: TrackedProduct,
        semaphore: asyncio.Semaphore,
    ) -> ScrapeOutcome:
        outcome = ScrapeOutcome(product=product)
        try:
            await self._scrape(product, outcome, semaphore)
        except ScrapeError as exc:
            stage = outcome.state.value
            outcome.error = exc
            outcome.state = ItemState.FAILED
            logger.warning(
                "Failed to scrape '%s' while %s: %s",
                product.name,
                stage,
                exc.reason,
            )
        except Exception as exc:
            outcome.error = ScrapeError(f"unexpected error: {exc}")
            outcome.state = ItemState.FAILED
            logger.error(
                "Unexpected error scraping '%s': %s",
                product.name,
                exc,
                exc_info=True,
            )
        return outcome

    # ── Public API ───────────────────────────────────────

    async def run(
        self, products: list[TrackedProduct],
    ) -> list[ScrapeOutcome]:
        """Scrape every product; one outcome per input, same order."""
        if not products:
            return []
        semaphore = asyncio.Semaphore(self.max_concurrency)
        logger.info(
            "Scraping %d products (max %d concurrent)",
            len(products),
            self.max_concurrency,
        )
        outcomes: list[ScrapeOutcome] = list(
            await asyncio.gather(
                *(self._run_one(p, semaphore) for p in products)
            )
        )
        failed = sum(1 for o in outcomes if not o.ok)
        logger.info(
            "Run complete: %d observed, %d failed",
            len(outcomes) - failed,
            failed,
        )
        return outcomes

    async def scrape_one(self, product: TrackedProduct) -> PriceObservation:
        """Scrape a single product, letting any ScrapeError propagate."""
        return await self._scrape(product, ScrapeOutcome(product=product))

    async def register(
        self, url: str, name: str | None = None,
    ) -> tuple[TrackedProduct, PriceObservation]:
        """Fetch a new listing once, name it and read its first price.

        When *name* is omitted it is taken from the page title.  The
        observation is not stored; the caller adds the product to the
        catalog first.  Every failure propagates to the caller.
        """
        page = await asyncio.to_thread(self.fetcher.fetch, url)
        product_name = (name or self.parser.parse_title(page.body)).strip()
        product = TrackedProduct(name=product_name, url=url)
        outcome = ScrapeOutcome(product=product)
        observation = self._observe(product.name, page, outcome)
        logger.info(
            "Registered '%s' at %s (%s)", product.name, url, observation.value,
        )
        return product, observation
