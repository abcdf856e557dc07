# pricesync/extraction/rules.py

"""Named pattern rules used by the price extractor.

Each rule is a small strategy object: a name plus a compiled
pattern.  The extractor sweeps the rule lists in order, so new
page shapes are supported by appending a rule rather than by
editing the sweep itself.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

# 1,299 / 1,20,000 / 99.50
_AMOUNT = r"(\d+(?:,\d+)*(?:\.\d{2})?)"
_JSON_AMOUNT = r"(\d+(?:\.\d{2})?)"


@dataclass(frozen=True)
class AmountMatch:
    """A numeric amount found by a rule, with its location in the text."""

    rule: str
    value: float
    start: int
    end: int


@dataclass(frozen=True)
class ExtractionRule:
    """Finds currency amounts whose first group is the number."""

    name: str
    pattern: re.Pattern[str]

    def find(self, text: str) -> Iterator[AmountMatch]:
        """Yield every amount this rule matches, separators stripped."""
        for m in self.pattern.finditer(text):
            raw = m.group(1).replace(",", "")
            try:
                value = float(raw)
            except ValueError:
                continue
            yield AmountMatch(
                rule=self.name,
                value=value,
                start=m.start(),
                end=m.end(),
            )


@dataclass(frozen=True)
class PhraseRule:
    """Flags text containing a fixed phrase."""

    name: str
    pattern: re.Pattern[str]

    def matches(self, text: str) -> bool:
        """Return True if the phrase occurs anywhere in *text*."""
        return self.pattern.search(text) is not None


def _json_key(key: str) -> re.Pattern[str]:
    return re.compile(rf'"{key}":\s*{_JSON_AMOUNT}')


PRICE_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule("rupee_symbol", re.compile(rf"₹\s*{_AMOUNT}")),
    ExtractionRule(
        "rs_prefix", re.compile(rf"\bRs\.?\s*{_AMOUNT}", re.IGNORECASE)
    ),
    ExtractionRule(
        "inr_prefix", re.compile(rf"\bINR\s*{_AMOUNT}", re.IGNORECASE)
    ),
    ExtractionRule("json_price", _json_key("price")),
    ExtractionRule("json_selling_price", _json_key("selling_price")),
    ExtractionRule("json_offer_price", _json_key("offer_price")),
)

MRP_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule(
        "mrp_text",
        re.compile(
            rf"\bM\.?R\.?P\.?:?\s*(?:₹|Rs\.?|INR)?\s*{_AMOUNT}",
            re.IGNORECASE,
        ),
    ),
    ExtractionRule("json_mrp", _json_key("mrp")),
    ExtractionRule("json_original_price", _json_key("original_price")),
    ExtractionRule(
        "strikethrough", re.compile(r"~~₹\s*(\d+(?:,\d+)*)")
    ),
)

UNAVAILABLE_RULES: tuple[PhraseRule, ...] = tuple(
    PhraseRule(
        phrase.replace(" ", "_"),
        re.compile(re.escape(phrase), re.IGNORECASE),
    )
    for phrase in (
        "out of stock",
        "currently unavailable",
        "not available",
        "sold out",
        "notify me",
    )
)
