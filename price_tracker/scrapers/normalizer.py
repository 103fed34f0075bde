# price_tracker/scrapers/normalizer.py

"""Turn extraction results into comparable, storable price values."""

import re
import unicodedata
from decimal import Decimal, InvalidOperation

from price_tracker.models.errors import ExtractionError, NormalizationError
from price_tracker.models.observation import (
    SOLD_OUT,
    SOLD_OUT_TOKEN,
    ExtractionResult,
    NotFound,
    Price,
    PriceValue,
    SoldOut,
)

# Optional ISO code around the amount, e.g. "USD 19.99" or "19.99 EUR".
# Commas only as thousands separators in groups of three, so a decimal
# comma ("19,99") is rejected rather than read as 1999.
_AMOUNT_RE = re.compile(
    r"^(?:[A-Z]{3}\s*)?"
    r"(?P<amount>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
    r"(?:\s*[A-Z]{3})?$"
)


def clean_price_text(text: str) -> str:
    """Strip currency symbols, ISO codes and thousands separators.

    Raises:
        NormalizationError: What remains is not a plain decimal.
    """
    without_symbols = "".join(
        ch for ch in text if unicodedata.category(ch) != "Sc"
    ).strip()
    match = _AMOUNT_RE.match(without_symbols)
    if not match:
        raise NormalizationError(text)
    return match.group("amount").replace(",", "")


def normalize(result: ExtractionResult) -> PriceValue:
    """Map an extraction result to ``Price`` or the ``SoldOut`` sentinel.

    Raises:
        NormalizationError: The price text cannot be read as a number.
        ExtractionError: *result* is ``NotFound``.
    """
    if isinstance(result, SoldOut):
        return SOLD_OUT
    if isinstance(result, NotFound):
        raise ExtractionError(result.reason)

    cleaned = clean_price_text(result.raw_text)
    try:
        amount = Decimal(cleaned)
    except InvalidOperation as exc:
        raise NormalizationError(result.raw_text) from exc
    if not amount.is_finite() or amount < 0:
        raise NormalizationError(result.raw_text)
    return Price(str(amount))


def to_storage(value: PriceValue) -> str:
    """Serialise a price value for the observation store."""
    if isinstance(value, SoldOut):
        return SOLD_OUT_TOKEN
    return value.amount


def from_storage(text: str) -> PriceValue:
    """Inverse of :func:`to_storage`."""
    if text == SOLD_OUT_TOKEN:
        return SOLD_OUT
    return Price(text)

