# price_tracker/config/settings.py

"""Central configuration for the price_tracker pipeline."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the price_tracker pipeline."""

    # --- Scraping ---
    REQUEST_TIMEOUT: int = int(
        os.getenv("PRICE_TRACKER_TIMEOUT", "5")
    )                                   # Seconds before a request times out
    MAX_CONCURRENCY: int = int(
        os.getenv("PRICE_TRACKER_CONCURRENCY", "4")
    )                                   # Concurrent fetches per run
    SELECTOR_PROFILE: str = os.getenv(
        "PRICE_TRACKER_SELECTORS", "amazon"
    )                                   # Key into selectors.json
    CLOUDSCRAPER_FALLBACK: bool = True  # Retry 403/503 through cloudscraper
    CAPTCHA_KEYWORDS: list[str] = [
        "captcha",
        "verify you are human",
        "unusual traffic",
        "automated requests",
        "robot check",
    ]

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "firefox133"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/webp,*/*;q=0.8"
        ),
        "Accept-Encoding": "gzip, deflate, br",
        "Accept-Language": "en-US,en;q=0.5",
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "DNT": "1",
        "Pragma": "no-cache",
        "Upgrade-Insecure-Requests": "1",
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) "
            "Gecko/20100101 Firefox/133.0"
        ),
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = Path(__file__).resolve().parent / "selectors.json"
    DATA_DIR: Path = BASE_DIR / "data"
    PRICE_DB_PATH: Path = Path(
        os.getenv(
            "PRICE_TRACKER_DB", str(DATA_DIR / "price_history.db")
        )
    )
    CHARTS_DIR: Path = DATA_DIR / "charts"
    LOGS_DIR: Path = BASE_DIR / "logs"
