# price_tracker/scrapers/price_parser.py

"""Cascading price extraction from product listing markup."""

import json
import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from price_tracker.config.settings import Settings
from price_tracker.models.errors import ExtractionError
from price_tracker.models.observation import (
    SOLD_OUT,
    ExtractedPrice,
    ExtractionResult,
    NotFound,
)

logger = logging.getLogger("price_tracker.parser")

_REQUIRED_KEYS: tuple[str, ...] = ("price", "deal_price", "title")


def load_selectors(profile: str | None = None) -> dict[str, str]:
    """Load one selector profile from selectors.json."""
    name = profile or Settings.SELECTOR_PROFILE
    with open(Settings.SELECTORS_PATH, encoding="utf-8") as f:
        all_selectors: dict[str, Any] = json.load(f)
    selectors: dict[str, str] | None = all_selectors.get(name)
    if selectors is None:
        msg = f"Unknown selector profile '{name}'"
        raise KeyError(msg)
    return selectors


class PriceParser:
    """Extract a price, a sold-out state or nothing from a listing page.

    The three locators (current price, deal price, title) are data, so a
    markup change on the target site is a ``selectors.json`` update.
    """

    def __init__(
        self,
        selectors: dict[str, str] | None = None,
        profile: str | None = None,
    ) -> None:
        self.selectors = selectors or load_selectors(profile)
        missing = [k for k in _REQUIRED_KEYS if k not in self.selectors]
        if missing:
            msg = f"Selector profile missing keys: {', '.join(missing)}"
            raise KeyError(msg)

    @staticmethod
    def _soup(markup: str) -> BeautifulSoup:
        return BeautifulSoup(markup, "lxml")

    @staticmethod
    def _text_of(soup: BeautifulSoup, selector: str) -> str | None:
        """Return the stripped text of the first match, or None."""
        el: Tag | None = soup.select_one(selector)
        if el is None:
            return None
        text = el.get_text(strip=True)
        return text or None

    def parse(self, markup: str) -> ExtractionResult:
        """Run the extraction cascade over *markup*.

        1. current price element, 2. deal price element, 3. sold out
        when the title is present.  A page with none of these is
        ``NotFound`` and must be treated as an error by the caller.
        """
        soup = self._soup(markup)

        price_text = self._text_of(soup, self.selectors["price"])
        if price_text is not None:
            return ExtractedPrice(price_text)

        deal_text = self._text_of(soup, self.selectors["deal_price"])
        if deal_text is not None:
            return ExtractedPrice(deal_text)

        if soup.select_one(self.selectors["title"]) is not None:
            return SOLD_OUT

        return NotFound(self._not_found_reason(markup))

    def parse_title(self, markup: str) -> str:
        """Return the product title up to its first comma.

        Raises:
            ExtractionError: The title element is missing or empty.
        """
        soup = self._soup(markup)
        title = self._text_of(soup, self.selectors["title"])
        if title is None:
            raise ExtractionError("no product title on page")
        name = title.split(",", 1)[0].strip()
        if not name:
            raise ExtractionError("product title is empty before first comma")
        return name

    @staticmethod
    def _not_found_reason(markup: str) -> str:
        """Explain a NotFound, flagging likely bot-check pages."""
        lower = markup.lower()
        for keyword in Settings.CAPTCHA_KEYWORDS:
            if keyword in lower:
                logger.warning(
                    "Bot check keyword '%s' found on page", keyword,
                )
                return (
                    "no price or title element on page "
                    f"(looks like a bot check: '{keyword}')"
                )
        return "no price or title element on page"
