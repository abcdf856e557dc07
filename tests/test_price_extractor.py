# tests/test_price_extractor.py

"""Tests for the heuristic price extractor."""

import unittest

from pricesync.extraction.price_extractor import (
    PriceExtractor,
    estimate_mrp,
    median_value,
)
from pricesync.extraction.rules import PRICE_RULES


class TestHelpers(unittest.TestCase):
    """median_value / estimate_mrp unit tests."""

    def test_median_odd_count(self) -> None:
        """Odd-length input returns the middle element."""
        self.assertEqual(median_value([30.0, 10.0, 20.0]), 20.0)

    def test_median_even_count_takes_upper(self) -> None:
        """Even-length input returns the upper-middle element."""
        self.assertEqual(median_value([10.0, 20.0, 30.0, 40.0]), 30.0)

    def test_median_single(self) -> None:
        """A single candidate is its own median."""
        self.assertEqual(median_value([42.0]), 42.0)

    def test_estimate_mrp_exact_multiples(self) -> None:
        """Float noise must not push the estimate up by one."""
        self.assertEqual(estimate_mrp(20.0, 1.1), 22.0)
        self.assertEqual(estimate_mrp(50.0, 1.1), 55.0)

    def test_estimate_mrp_rounds_up(self) -> None:
        """Fractional estimates are rounded up."""
        self.assertEqual(estimate_mrp(99.0, 1.1), 109.0)


class TestPriceExtractor(unittest.TestCase):
    """PriceExtractor.extract behaviour."""

    def setUp(self) -> None:
        self.extractor = PriceExtractor()

    def test_empty_text_returns_none(self) -> None:
        """Empty or missing text is a miss."""
        self.assertIsNone(self.extractor.extract(""))
        self.assertIsNone(self.extractor.extract(None))

    def test_no_prices_returns_none(self) -> None:
        """Text without currency amounts is a miss."""
        text = "Amul Taaza Toned Milk 500 ml - delivered in 10 minutes"
        self.assertIsNone(self.extractor.extract(text))

    def test_out_of_range_prices_return_none(self) -> None:
        """Zero and six-figure amounts are rejected as noise."""
        text = "Call ₹0 or ₹100000 or ₹250000 for offers"
        self.assertIsNone(self.extractor.extract(text))

    def test_median_price_and_estimated_mrp(self) -> None:
        """Prices [10, 20, 30] with no MRP give price 20, MRP 22."""
        text = "Pack of 1 ₹10\nPack of 2 ₹20\nPack of 3 ₹30"
        obs = self.extractor.extract(text)
        self.assertIsNotNone(obs)
        assert obs is not None
        self.assertEqual(obs.price, 20.0)
        self.assertEqual(obs.mrp, 22.0)
        self.assertTrue(obs.available)

    def test_mrp_label_and_selling_price(self) -> None:
        """An MRP-labelled amount is not counted as a selling price."""
        text = "MRP ₹120 ... Now ₹99 ... In Stock"
        obs = self.extractor.extract(text)
        assert obs is not None
        self.assertEqual(obs.price, 99.0)
        self.assertEqual(obs.mrp, 120.0)
        self.assertTrue(obs.available)

    def test_currently_unavailable(self) -> None:
        """Unavailability phrase flips the flag; MRP is estimated."""
        text = "Britannia Bread ₹50 - Currently Unavailable"
        obs = self.extractor.extract(text)
        assert obs is not None
        self.assertEqual(obs.price, 50.0)
        self.assertEqual(obs.mrp, 55.0)
        self.assertFalse(obs.available)

    def test_mrp_below_price_is_promoted(self) -> None:
        """A found MRP lower than the price is raised to the price."""
        text = '{"selling_price": 80, "mrp": 60}'
        obs = self.extractor.extract(text)
        assert obs is not None
        self.assertEqual(obs.price, 80.0)
        self.assertEqual(obs.mrp, 80.0)

    def test_thousands_separators_stripped(self) -> None:
        """Comma-grouped amounts parse as a single number."""
        text = "Ghee 1L Rs. 1,299.00 M.R.P: ₹1,450"
        obs = self.extractor.extract(text)
        assert obs is not None
        self.assertEqual(obs.price, 1299.0)
        self.assertEqual(obs.mrp, 1450.0)

    def test_inr_and_json_price_keys(self) -> None:
        """INR and JSON keys all feed the candidate list."""
        text = 'INR 45 {"price": 40} {"offer_price": 42}'
        obs = self.extractor.extract(text)
        assert obs is not None
        # candidates 40, 42, 45 -> median 42
        self.assertEqual(obs.price, 42.0)

    def test_strikethrough_mrp(self) -> None:
        """Markdown strikethrough amounts are MRPs, not prices."""
        text = "~~₹60~~ ₹48 Aashirvaad Atta"
        obs = self.extractor.extract(text)
        assert obs is not None
        self.assertEqual(obs.price, 48.0)
        self.assertEqual(obs.mrp, 60.0)

    def test_unavailable_case_insensitive(self) -> None:
        """Phrases match regardless of case."""
        for phrase in (
            "OUT OF STOCK",
            "Sold Out",
            "notify ME",
            "Not Available",
        ):
            with self.subTest(phrase=phrase):
                obs = self.extractor.extract(f"₹25 {phrase}")
                assert obs is not None
                self.assertFalse(obs.available)

    def test_platform_and_name_attached(self) -> None:
        """Caller context is carried on the observation."""
        obs = self.extractor.extract(
            "₹30", platform_id="zepto", product_name="Amul Butter",
        )
        assert obs is not None
        self.assertEqual(obs.platform_id, "zepto")
        self.assertEqual(obs.product_name, "Amul Butter")

    def test_deterministic(self) -> None:
        """Repeated runs over the same text agree."""
        text = "₹12 ₹99 ₹45 MRP ₹120 ₹7"
        first = self.extractor.extract(text)
        second = self.extractor.extract(text)
        self.assertEqual(first, second)

    def test_custom_rule_list(self) -> None:
        """A narrower rule list only sees its own patterns."""
        json_only = PriceExtractor(
            price_rules=[
                r for r in PRICE_RULES if r.name.startswith("json_")
            ],
        )
        self.assertIsNone(json_only.extract("₹99 only"))
        obs = json_only.extract('{"price": 99}')
        assert obs is not None
        self.assertEqual(obs.price, 99.0)


if __name__ == "__main__":
    unittest.main()
