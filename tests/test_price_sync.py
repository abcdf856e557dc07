# tests/test_price_sync.py

"""Tests for the public sync and lookup entry points."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from pricesync.config.settings import Settings
from pricesync.errors import ConfigurationError, PersistenceError
from pricesync.models.product import Product
from pricesync.scrapers.content_fetcher import RawContent
from pricesync.services.price_sync import PriceSyncService
from pricesync.storage.price_store import PriceStore


def _fetcher(text: str = "₹50 MRP ₹60") -> MagicMock:
    """A fetcher that returns the same page for every platform."""
    fetcher = MagicMock()
    fetcher.fetch.side_effect = lambda platform_id, name, region=None: (
        RawContent(platform_id=platform_id, url="https://x", text=text)
    )
    return fetcher


class TestPriceSyncService(unittest.TestCase):
    """PriceSyncService against a temp store and stub fetcher."""

    def setUp(self) -> None:
        self.tmp_dir = tempfile.mkdtemp()
        self.fetcher = _fetcher()
        self.service = PriceSyncService(
            store=self._store(), fetcher=self.fetcher,
        )
        self.service.store.add_product(Product(
            id="milk-500", name="Taaza Milk", brand="Amul",
            size="500 ml", category="Dairy", barcode="8901262010016",
        ))

    def _store(self, name: str = "test.db") -> PriceStore:
        return PriceStore(db_path=Path(self.tmp_dir) / name)

    def tearDown(self) -> None:
        self.service.close()

    # ── sync_one_product ─────────────────────────────────

    def test_sync_by_id_uses_catalog_search_name(self) -> None:
        data = self.service.sync_one_product("milk-500", platforms=["zepto"])
        self.assertTrue(data["success"])
        self.fetcher.fetch.assert_called_once()
        self.assertEqual(
            self.fetcher.fetch.call_args.args[1], "Amul Taaza Milk 500 ml",
        )
        self.assertEqual(
            data["results"],
            {"zepto": {"price": 50.0, "mrp": 60.0, "available": True}},
        )

    def test_no_platform_list_means_all_eight(self) -> None:
        data = self.service.sync_one_product("milk-500", "Amul Milk")
        self.assertEqual(self.fetcher.fetch.call_count, 8)
        results = data["results"]
        assert isinstance(results, dict)
        self.assertEqual(set(results), set(Settings.default_platform_ids()))
        self.assertEqual(
            len(self.service.store.get_prices_for_product("milk-500")), 8,
        )

    def test_missing_name_rejected(self) -> None:
        data = self.service.sync_one_product(None)
        self.assertEqual(
            data, {"success": False, "error": "Product name is required"},
        )
        self.fetcher.fetch.assert_not_called()

    def test_unknown_product_rejected(self) -> None:
        data = self.service.sync_one_product("nope")
        self.assertFalse(data["success"])
        self.assertIn("Product not found", str(data["error"]))

    def test_unknown_product_rejected_even_with_name(self) -> None:
        """An id outside the catalog is refused before any fetch."""
        data = self.service.sync_one_product("ghost", "Amul Butter")
        self.assertEqual(
            data, {"success": False, "error": "Product not found: ghost"},
        )
        self.fetcher.fetch.assert_not_called()
        self.assertEqual(self.service.store.get_scrape_logs(), [])

    def test_name_overrides_catalog_search_name(self) -> None:
        self.service.sync_one_product(
            "milk-500", "Amul Milk", platforms=["zepto"],
        )
        self.assertEqual(self.fetcher.fetch.call_args.args[1], "Amul Milk")
        self.assertEqual(len(self.service.store.get_scrape_logs("milk-500")), 1)

    def test_rerun_is_safe(self) -> None:
        """Running twice keeps one row per platform and writes history."""
        self.service.sync_one_product("milk-500", platforms=["zepto"])
        self.service.sync_one_product("milk-500", platforms=["zepto"])
        self.assertEqual(
            len(self.service.store.get_prices_for_product("milk-500")), 1,
        )
        self.assertEqual(len(self.service.price_history("milk-500")), 1)

    @patch.object(Settings, "FIRECRAWL_API_KEY", "")
    def test_missing_key_fails_before_fetching(self) -> None:
        service = PriceSyncService(store=self.service.store)
        with self.assertRaises(ConfigurationError):
            service.sync_one_product("milk-500")

    @patch.object(Settings, "FIRECRAWL_API_KEY", "")
    def test_lookups_work_without_key(self) -> None:
        service = PriceSyncService(store=self.service.store)
        self.assertEqual(len(service.search_products(search="milk")), 1)

    # ── sync_all_products ────────────────────────────────

    def test_sync_all_summary(self) -> None:
        data = self.service.sync_all_products()
        self.assertTrue(data["success"])
        self.assertEqual(data["totalProducts"], 1)
        self.assertEqual(data["successCount"], 1)
        self.assertEqual(data["errorCount"], 0)

    def test_sync_all_empty_catalog(self) -> None:
        store = self._store("empty.db")
        service = PriceSyncService(store=store, fetcher=self.fetcher)
        try:
            data = service.sync_all_products()
        finally:
            service.close()
        self.assertEqual(data["totalProducts"], 0)
        self.fetcher.fetch.assert_not_called()

    def test_sync_all_catalog_read_failure(self) -> None:
        with patch.object(
            self.service.store,
            "list_products",
            side_effect=PersistenceError("no such table"),
        ):
            data = self.service.sync_all_products()
        self.assertFalse(data["success"])
        self.assertIn("Failed to fetch products", str(data["error"]))

    # ── Lookups ──────────────────────────────────────────

    def test_search_attaches_prices_and_cheapest(self) -> None:
        self.service.sync_one_product("milk-500", platforms=["zepto"])
        listings = self.service.search_products(search="taaza")
        self.assertEqual(len(listings), 1)
        cheapest = listings[0].cheapest
        assert cheapest is not None
        self.assertEqual(cheapest.platform_id, "zepto")

    def test_barcode_lookup(self) -> None:
        listing = self.service.get_product_by_barcode("8901262010016")
        assert listing is not None
        self.assertEqual(listing.product.id, "milk-500")
        self.assertIsNone(self.service.get_product_by_barcode("000"))

    def test_platform_cache_reads_seeded_platforms(self) -> None:
        platform = self.service.platforms.get("bigbasket")
        assert platform is not None
        self.assertEqual(platform.name, "BigBasket")


if __name__ == "__main__":
    unittest.main()
