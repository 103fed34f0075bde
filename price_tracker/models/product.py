# price_tracker/models/product.py

"""Tracked product model handed to the scrape pipeline by the catalog."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TrackedProduct:
    """A catalog entry whose price is sampled over time.

    ``name`` is unique within the catalog and doubles as the
    time-series key (``product_id``) for stored observations.
    """

    name: str
    url: str
