# pricesync/services/price_sync.py

"""Public entry points: sync one product, sync the catalog, look up prices."""

import logging
from dataclasses import dataclass, field

from pricesync.config.settings import Settings
from pricesync.errors import PersistenceError
from pricesync.extraction.price_extractor import PriceExtractor
from pricesync.models.price import (
    PriceHistoryEntry,
    PriceRecord,
    cheapest_price,
)
from pricesync.models.product import Product
from pricesync.scrapers.content_fetcher import ContentFetcher
from pricesync.services.batch_driver import BatchDriver
from pricesync.services.platform_orchestrator import PlatformOrchestrator
from pricesync.storage.platform_cache import PlatformCache
from pricesync.storage.price_store import PriceStore

logger = logging.getLogger("pricesync.service")


@dataclass
class ProductListing:
    """A catalog product together with its live price rows."""

    product: Product
    prices: list[PriceRecord] = field(
        default_factory=lambda: list[PriceRecord]()
    )

    @property
    def cheapest(self) -> PriceRecord | None:
        """Lowest available price, if any platform has stock."""
        return cheapest_price(self.prices)


class PriceSyncService:
    """Wires the store, fetcher and orchestration layers together.

    The content-service credential is only required once a sync is
    requested; read-only lookups work without it.
    """

    def __init__(
        self,
        store: PriceStore | None = None,
        fetcher: ContentFetcher | None = None,
        extractor: PriceExtractor | None = None,
    ) -> None:
        self.settings = Settings()
        self.store = store or PriceStore()
        self.platforms = PlatformCache(self.store)
        self._fetcher = fetcher
        self._extractor = extractor or PriceExtractor()
        self._orchestrator: PlatformOrchestrator | None = None

    @property
    def orchestrator(self) -> PlatformOrchestrator:
        """Build the orchestrator on first use.

        Raises:
            ConfigurationError: if no fetcher was injected and the
                content-service key is missing.
        """
        if self._orchestrator is None:
            fetcher = self._fetcher or ContentFetcher()
            self._orchestrator = PlatformOrchestrator(
                store=self.store,
                fetcher=fetcher,
                extractor=self._extractor,
            )
        return self._orchestrator

    def close(self) -> None:
        """Release the underlying store."""
        self.store.close()

    # ── Sync ─────────────────────────────────────────────

    def sync_one_product(
        self,
        product_id: str | None,
        product_name: str | None = None,
        platforms: list[str] | None = None,
    ) -> dict[str, object]:
        """Scrape and store current prices for one product.

        A given *product_id* must exist in the catalog, even when
        *product_name* overrides its search name; otherwise no scrape
        log could reference it.  When *product_name* is omitted it is
        built from the catalog entry.  Safe to call again after a
        partial failure.
        """
        if product_id:
            try:
                product = self.store.get_product(product_id)
            except PersistenceError as exc:
                return {"success": False, "error": str(exc)}
            if product is None:
                return {
                    "success": False,
                    "error": f"Product not found: {product_id}",
                }
            product_name = product_name or product.search_name
        if not product_name:
            return {"success": False, "error": "Product name is required"}

        result = self.orchestrator.run(
            product_id, product_name, platforms,
        )
        return result.to_dict()

    def sync_all_products(
        self,
        deadline: float | None = None,
    ) -> dict[str, object]:
        """Scrape every catalog product; see :class:`BatchDriver`."""
        driver = BatchDriver(self.store, self.orchestrator)
        try:
            summary = driver.run_all(deadline=deadline)
        except PersistenceError as exc:
            logger.error("Failed to fetch products: %s", exc)
            return {
                "success": False,
                "error": f"Failed to fetch products: {exc}",
            }
        return summary.to_dict()

    # ── Lookups ──────────────────────────────────────────

    def search_products(
        self,
        search: str | None = None,
        barcode: str | None = None,
        category: str | None = None,
    ) -> list[ProductListing]:
        """Find catalog products and attach their live prices."""
        products = self.store.search_products(
            search=search, barcode=barcode, category=category,
        )
        return [
            ProductListing(
                product=p,
                prices=self.store.get_prices_for_product(p.id),
            )
            for p in products
        ]

    def get_product_by_barcode(
        self, barcode: str,
    ) -> ProductListing | None:
        """Exact barcode lookup (scanner flow)."""
        listings = self.search_products(barcode=barcode)
        return listings[0] if listings else None

    def price_history(
        self,
        product_id: str,
        platform_id: str | None = None,
    ) -> list[PriceHistoryEntry]:
        """Return the stored price history of a product."""
        return self.store.get_price_history(product_id, platform_id)
