# pricesync/extraction/price_extractor.py

"""Heuristic extraction of price, MRP and availability from page text."""

import logging
import math
from collections.abc import Sequence
from decimal import Decimal

from pricesync.config.settings import Settings
from pricesync.extraction.rules import (
    MRP_RULES,
    PRICE_RULES,
    UNAVAILABLE_RULES,
    AmountMatch,
    ExtractionRule,
    PhraseRule,
)
from pricesync.models.price import PriceObservation

logger = logging.getLogger("pricesync.extractor")


def median_value(values: Sequence[float]) -> float:
    """Upper-median of *values*: ``sorted(values)[len // 2]``.

    Always returns an element of the input, never an average.
    """
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def estimate_mrp(price: float, factor: float) -> float:
    """``ceil(price * factor)`` computed in decimal arithmetic.

    Binary floats turn ``20 * 1.1`` into ``22.000000000000004``,
    which would ceil to 23.
    """
    product = Decimal(str(price)) * Decimal(str(factor))
    return float(math.ceil(product))


class PriceExtractor:
    """Turns raw rendered text into a :class:`PriceObservation`.

    Pure and deterministic.  The sweep is:

    1. Collect MRP candidates from ``mrp_rules``.
    2. Collect price candidates from ``price_rules``, skipping any
       amount that sits inside an MRP match (``MRP ₹120`` is not a
       selling price).
    3. Keep only values strictly inside ``(price_min, price_max)``.
    4. No price candidates -> ``None``.
    5. Price and MRP are the upper-median of their candidates; a
       missing MRP is estimated, an MRP below price is raised to it.
    6. Any unavailability phrase marks the observation unavailable.
    """

    def __init__(
        self,
        price_rules: Sequence[ExtractionRule] = PRICE_RULES,
        mrp_rules: Sequence[ExtractionRule] = MRP_RULES,
        unavailable_rules: Sequence[PhraseRule] = UNAVAILABLE_RULES,
    ) -> None:
        self.settings = Settings()
        self.price_rules = tuple(price_rules)
        self.mrp_rules = tuple(mrp_rules)
        self.unavailable_rules = tuple(unavailable_rules)

    def _in_range(self, value: float) -> bool:
        return self.settings.PRICE_MIN < value < self.settings.PRICE_MAX

    def _collect(
        self,
        text: str,
        rules: Sequence[ExtractionRule],
        exclude: Sequence[AmountMatch] = (),
    ) -> list[float]:
        """Run *rules* over *text* and return in-range amounts."""
        values: list[float] = []
        for rule in rules:
            for match in rule.find(text):
                if any(
                    ex.start <= match.start and match.end <= ex.end
                    for ex in exclude
                ):
                    continue
                if self._in_range(match.value):
                    values.append(match.value)
        return values

    def is_available(self, text: str) -> bool:
        """False if any unavailability phrase is present."""
        for rule in self.unavailable_rules:
            if rule.matches(text):
                logger.debug("Unavailable marker '%s' found", rule.name)
                return False
        return True

    def extract(
        self,
        text: str | None,
        platform_id: str = "",
        product_name: str = "",
    ) -> PriceObservation | None:
        """Extract a price observation, or ``None`` if no price is found."""
        if not text:
            return None

        mrp_matches = [
            m for rule in self.mrp_rules for m in rule.find(text)
        ]
        prices = self._collect(text, self.price_rules, exclude=mrp_matches)
        if not prices:
            logger.debug(
                "[%s] No price candidates in %d chars",
                platform_id or "-",
                len(text),
            )
            return None

        price = median_value(prices)

        mrps = self._collect(text, self.mrp_rules)
        if mrps:
            mrp = median_value(mrps)
        else:
            mrp = estimate_mrp(price, self.settings.MRP_ESTIMATE_FACTOR)
        mrp = max(mrp, price)

        observation = PriceObservation(
            price=price,
            mrp=mrp,
            available=self.is_available(text),
            platform_id=platform_id,
            product_name=product_name,
        )
        logger.debug(
            "[%s] %d price / %d MRP candidates -> %s",
            platform_id or "-",
            len(prices),
            len(mrps),
            observation,
        )
        return observation
