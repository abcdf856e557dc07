# pricesync/config/settings.py

"""Central configuration for the pricesync engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

from pricesync.errors import ConfigurationError

load_dotenv()


class Settings:
    """Central configuration for the pricesync engine."""

    # --- Content service (Firecrawl) ---
    FIRECRAWL_API_KEY: str = os.getenv("FIRECRAWL_API_KEY", "")
    FIRECRAWL_SCRAPE_URL: str = os.getenv(
        "FIRECRAWL_SCRAPE_URL",
        "https://api.firecrawl.dev/v1/scrape",
    )
    REQUEST_TIMEOUT: int = 30           # Seconds before a fetch times out
    RENDER_WAIT_MS: int = 3000          # Remote render wait per page
    FETCH_COUNTRY: str = "IN"
    FETCH_LANGUAGES: list[str] = ["en"]

    # --- Region ---
    REGION_PINCODE: str = os.getenv("PRICESYNC_PINCODE", "603103")
    REGION_LABEL: str = os.getenv("PRICESYNC_REGION_LABEL", "Chennai")

    # --- Pacing ---
    PLATFORM_DELAY: float = 0.5         # Seconds between platform attempts
    PRODUCT_DELAY: float = 2.0          # Seconds between products in a batch

    # --- Extraction ---
    PRICE_MIN: float = 0.0              # Exclusive lower bound
    PRICE_MAX: float = 100000.0         # Exclusive upper bound
    MRP_ESTIMATE_FACTOR: float = 1.1    # MRP guess when none is printed

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    PRICE_DB_PATH: Path = Path(
        os.getenv("PRICESYNC_DB_PATH", str(DATA_DIR / "prices.db"))
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Platforms (order is the default scrape order) ---
    AVAILABLE_PLATFORMS: list[dict[str, str]] = [
        {
            "id": "blinkit",
            "label": "Blinkit",
            "search_url": "https://blinkit.com/s/?q={query}",
            "logo": "🟡",
            "color": "#F8CB46",
            "base_url": "https://blinkit.com",
        },
        {
            "id": "zepto",
            "label": "Zepto",
            "search_url": "https://www.zeptonow.com/search?query={query}",
            "logo": "🟣",
            "color": "#7B2CBF",
            "base_url": "https://www.zeptonow.com",
        },
        {
            "id": "swiggy",
            "label": "Swiggy Instamart",
            "search_url": (
                "https://www.swiggy.com/instamart/search?query={query}"
            ),
            "logo": "🟠",
            "color": "#FC8019",
            "base_url": "https://www.swiggy.com/instamart",
        },
        {
            "id": "amazon",
            "label": "Amazon Fresh",
            "search_url": "https://www.amazon.in/s?k={query}&i=nowstore",
            "logo": "🔶",
            "color": "#FF9900",
            "base_url": "https://www.amazon.in",
        },
        {
            "id": "flipkart",
            "label": "Flipkart Groceries",
            "search_url": (
                "https://www.flipkart.com/search?q={query}"
                "&otracker=search&marketplace=GROCERY"
            ),
            "logo": "🔵",
            "color": "#2874F0",
            "base_url": "https://www.flipkart.com",
        },
        {
            "id": "bigbasket",
            "label": "BigBasket",
            "search_url": "https://www.bigbasket.com/ps/?q={query}",
            "logo": "🟢",
            "color": "#84C225",
            "base_url": "https://www.bigbasket.com",
        },
        {
            "id": "jiomart",
            "label": "JioMart",
            "search_url": "https://www.jiomart.com/search/{query}",
            "logo": "🔷",
            "color": "#0078AD",
            "base_url": "https://www.jiomart.com",
        },
        {
            "id": "dmart",
            "label": "DMart Ready",
            "search_url": "https://www.dmartready.com/search/{query}",
            "logo": "🟩",
            "color": "#00A651",
            "base_url": "https://www.dmartready.com",
        },
    ]

    @classmethod
    def default_platform_ids(cls) -> list[str]:
        """Return the platform ids in their default scrape order."""
        return [p["id"] for p in cls.AVAILABLE_PLATFORMS]

    @classmethod
    def require_api_key(cls) -> str:
        """Return the content-service key or fail before any work starts."""
        if not cls.FIRECRAWL_API_KEY:
            msg = "FIRECRAWL_API_KEY is not configured"
            raise ConfigurationError(msg)
        return cls.FIRECRAWL_API_KEY
