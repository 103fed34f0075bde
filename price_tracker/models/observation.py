# price_tracker/models/observation.py

"""Price observation, raw page and extraction result models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

# Persisted form of the sold-out sentinel
SOLD_OUT_TOKEN = "Sold Out"


@dataclass(frozen=True)
class Price:
    """A normalised price: a plain non-negative decimal string."""

    amount: str

    def as_decimal(self) -> Decimal:
        """Return the amount as a :class:`~decimal.Decimal`."""
        return Decimal(self.amount)

    def __str__(self) -> str:
        return self.amount


@dataclass(frozen=True)
class SoldOut:
    """The listing exists but has no purchasable price."""

    def __str__(self) -> str:
        return SOLD_OUT_TOKEN


SOLD_OUT = SoldOut()

PriceValue = Price | SoldOut


@dataclass(frozen=True)
class PriceObservation:
    """One timestamped price-or-sold-out reading for a product."""

    product_id: str
    observed_at: datetime
    value: PriceValue

    @property
    def is_sold_out(self) -> bool:
        """True when the reading is the sold-out sentinel."""
        return isinstance(self.value, SoldOut)


@dataclass(frozen=True)
class RawPage:
    """Fetched markup, alive only between the fetcher and the parser."""

    url: str
    body: str
    fetched_at: datetime


# ── Extraction results ───────────────────────────────────


@dataclass(frozen=True)
class ExtractedPrice:
    """Price text exactly as found in the markup."""

    raw_text: str


@dataclass(frozen=True)
class NotFound:
    """The page matched none of the known price or title elements."""

    reason: str = "no price or title element on page"


ExtractionResult = ExtractedPrice | SoldOut | NotFound
