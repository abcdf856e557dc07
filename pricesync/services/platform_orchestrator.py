# pricesync/services/platform_orchestrator.py

"""Runs fetch -> extract -> reconcile for every platform of one product."""

import logging
import time
from dataclasses import dataclass, field

from pricesync.config.settings import Settings
from pricesync.errors import PersistenceError
from pricesync.extraction.price_extractor import PriceExtractor
from pricesync.models.price import (
    PriceObservation,
    PriceRecord,
    ScrapeLogEntry,
    ScrapeStatus,
)
from pricesync.scrapers.content_fetcher import ContentFetcher, FetchError
from pricesync.scrapers.platforms import build_search_url
from pricesync.services.reconciler import reconcile
from pricesync.storage.price_store import PriceStore

logger = logging.getLogger("pricesync.orchestrator")


@dataclass
class SyncResult:
    """Outcome of syncing one product across its platforms.

    ``results`` maps every attempted platform to its observation, or
    ``None`` when the fetch failed, no price was found, or the write
    failed.  Skipped (unsupported) platforms do not appear.
    """

    product_id: str | None
    product_name: str
    region: str
    success: bool = True
    results: dict[str, PriceObservation | None] = field(
        default_factory=lambda: dict[str, PriceObservation | None]()
    )
    logs: list[ScrapeLogEntry] = field(
        default_factory=lambda: list[ScrapeLogEntry]()
    )
    skipped: list[str] = field(
        default_factory=lambda: list[str]()
    )

    @property
    def found_count(self) -> int:
        """Number of platforms that produced an observation."""
        return sum(1 for r in self.results.values() if r is not None)

    @property
    def message(self) -> str:
        return (
            f"Scraped {self.found_count} prices for "
            f"{Settings.REGION_LABEL} {self.region}"
        )

    def to_dict(self) -> dict[str, object]:
        """Serialise to the invocation-surface response shape."""
        return {
            "success": self.success,
            "results": {
                pid: (obs.to_dict() if obs else None)
                for pid, obs in self.results.items()
            },
            "region": self.region,
            "message": self.message,
        }


class PlatformOrchestrator:
    """Sequentially syncs one product across several platforms.

    One platform's failure never aborts the others: every attempt
    ends in exactly one scrape-log entry and one slot in the result
    map.  Platforms are never fetched concurrently.
    """

    def __init__(
        self,
        store: PriceStore,
        fetcher: ContentFetcher,
        extractor: PriceExtractor | None = None,
        region: str | None = None,
    ) -> None:
        self.settings = Settings()
        self.store = store
        self.fetcher = fetcher
        self.extractor = extractor or PriceExtractor()
        self.region = region or self.settings.REGION_PINCODE

    # ── Private helpers ──────────────────────────────────

    def _log_attempt(
        self,
        result: SyncResult,
        platform_id: str,
        status: ScrapeStatus,
        error_message: str | None = None,
    ) -> None:
        """Append the attempt's audit row; a failed write is only logged."""
        entry = ScrapeLogEntry(
            product_id=result.product_id,
            platform_id=platform_id,
            status=status,
            error_message=error_message,
        )
        result.logs.append(entry)
        try:
            self.store.insert_scrape_log(entry)
        except PersistenceError as exc:
            logger.error(
                "[%s] Could not write scrape log (%s): %s",
                platform_id,
                status.value,
                exc,
            )

    def _persist(
        self,
        product_id: str,
        observation: PriceObservation,
        previous: PriceRecord | None,
    ) -> None:
        """Reconcile against *previous* and write the outcome."""
        outcome = reconcile(
            product_id,
            observation,
            previous,
            region=self.region,
        )
        self.store.apply_reconciliation(outcome.record, outcome.history)
        logger.debug(
            "[%s] Stored %.2f (change %+.1f%%, discount %d%%)",
            observation.platform_id,
            outcome.record.price,
            outcome.record.price_change,
            outcome.record.discount,
        )

    def _sync_platform(
        self,
        result: SyncResult,
        platform_id: str,
        previous_records: dict[str, PriceRecord] | None,
    ) -> None:
        """Run one platform attempt and record its outcome."""
        fetched = self.fetcher.fetch(
            platform_id,
            result.product_name,
            self.settings.FETCH_COUNTRY,
        )
        if isinstance(fetched, FetchError):
            logger.info(
                "[%s] Scrape %s: %s",
                platform_id,
                fetched.status.value,
                fetched.message,
            )
            result.results[platform_id] = None
            self._log_attempt(
                result, platform_id, fetched.status, fetched.message,
            )
            return

        observation = self.extractor.extract(
            fetched.text,
            platform_id=platform_id,
            product_name=result.product_name,
        )
        if observation is None:
            logger.info("[%s] No price found", platform_id)
            result.results[platform_id] = None
            self._log_attempt(
                result, platform_id, ScrapeStatus.NO_PRICE_FOUND,
            )
            return

        if result.product_id is not None:
            try:
                if previous_records is not None:
                    previous = previous_records.get(platform_id)
                else:
                    previous = self.store.get_price_record(
                        result.product_id, platform_id,
                    )
                self._persist(result.product_id, observation, previous)
            except PersistenceError as exc:
                logger.error(
                    "[%s] Failed to store price: %s", platform_id, exc,
                )
                result.results[platform_id] = None
                self._log_attempt(
                    result, platform_id, ScrapeStatus.ERROR, str(exc),
                )
                return

        logger.info(
            "[%s] ₹%.2f (MRP ₹%.2f, %s)",
            platform_id,
            observation.price,
            observation.mrp,
            "available" if observation.available else "unavailable",
        )
        result.results[platform_id] = observation
        self._log_attempt(result, platform_id, ScrapeStatus.SUCCESS)

    # ── Public entry point ───────────────────────────────

    def run(
        self,
        product_id: str | None,
        product_name: str,
        platforms: list[str] | None = None,
        previous_records: dict[str, PriceRecord] | None = None,
    ) -> SyncResult:
        """Sync *product_name* across *platforms*.

        ``None`` means every registered platform; an empty list
        attempts nothing.

        With ``product_id=None`` the observations are returned but
        nothing is stored except the scrape logs.  When
        *previous_records* is given it is used instead of reading
        each previous record from the store.
        """
        platform_ids = (
            platforms
            if platforms is not None
            else self.settings.default_platform_ids()
        )
        result = SyncResult(
            product_id=product_id,
            product_name=product_name,
            region=self.region,
        )
        logger.info(
            "Scraping prices for '%s' in %s %s",
            product_name,
            self.settings.REGION_LABEL,
            self.region,
        )

        for platform_id in platform_ids:
            if not build_search_url(platform_id, product_name):
                logger.warning(
                    "Skipping unsupported platform '%s'", platform_id,
                )
                result.skipped.append(platform_id)
                continue

            try:
                self._sync_platform(result, platform_id, previous_records)
            except Exception as exc:
                logger.error(
                    "[%s] Unexpected error: %s",
                    platform_id,
                    exc,
                    exc_info=True,
                )
                result.results[platform_id] = None
                self._log_attempt(
                    result,
                    platform_id,
                    ScrapeStatus.ERROR,
                    str(exc) or type(exc).__name__,
                )

            time.sleep(self.settings.PLATFORM_DELAY)

        logger.info(result.message)
        return result
