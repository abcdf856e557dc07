# pricesync/services/batch_driver.py

"""Syncs every catalog product, one at a time."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

from pricesync.config.settings import Settings
from pricesync.services.platform_orchestrator import PlatformOrchestrator
from pricesync.storage.price_store import PriceStore

logger = logging.getLogger("pricesync.batch")


@dataclass
class BatchSummary:
    """Aggregate outcome of a whole-catalog run."""

    total_products: int = 0
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    scraped_at: datetime = field(default_factory=datetime.now)
    success: bool = True
    message: str = ""

    def to_dict(self) -> dict[str, object]:
        """Serialise to the invocation-surface response shape."""
        data: dict[str, object] = {
            "success": self.success,
            "totalProducts": self.total_products,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "scrapedAt": self.scraped_at.isoformat(),
        }
        if self.skipped_count:
            data["skippedCount"] = self.skipped_count
        if self.message:
            data["message"] = self.message
        return data


class BatchDriver:
    """Runs the orchestrator for every product with fixed pacing.

    A product counts as a success once its sync returns, whatever
    the per-platform outcomes; those live in the scrape logs.  A
    product whose sync raises is counted as an error and the run
    moves on.
    """

    def __init__(
        self,
        store: PriceStore,
        orchestrator: PlatformOrchestrator,
    ) -> None:
        self.settings = Settings()
        self.store = store
        self.orchestrator = orchestrator
        self._clock = time.monotonic

    def run_all(
        self,
        deadline: float | None = None,
    ) -> BatchSummary:
        """Sync all catalog products sequentially.

        Args:
            deadline: Optional ``time.monotonic()`` value; checked
                between products.  Products not started before it
                passes are counted in ``skipped_count``.
        """
        products = self.store.list_products()
        if not products:
            logger.info("No products to scrape")
            return BatchSummary(message="No products to scrape")

        summary = BatchSummary(total_products=len(products))
        logger.info(
            "Starting price scrape for %d products", len(products),
        )

        for index, product in enumerate(products):
            if deadline is not None and self._clock() >= deadline:
                summary.skipped_count = len(products) - index
                logger.warning(
                    "Deadline reached, %d products not scraped",
                    summary.skipped_count,
                )
                break

            search_name = product.search_name
            logger.info("Scraping: %s", search_name)
            try:
                result = self.orchestrator.run(product.id, search_name)
                summary.success_count += 1
                logger.debug(
                    "%s: %d prices found", product.name, result.found_count,
                )
            except Exception as exc:
                summary.error_count += 1
                logger.error(
                    "Error scraping %s: %s",
                    product.name,
                    exc,
                    exc_info=True,
                )

            time.sleep(self.settings.PRODUCT_DELAY)

        summary.scraped_at = datetime.now()
        logger.info(
            "Price scrape completed: %d ok, %d errors, %d skipped",
            summary.success_count,
            summary.error_count,
            summary.skipped_count,
        )
        return summary
