# pricesync/models/price.py

"""Price observation, record, history and scrape-log models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ScrapeStatus(str, Enum):
    """Outcome of one (product, platform) scrape attempt."""

    SUCCESS = "success"
    NO_PRICE_FOUND = "no_price_found"
    FAILED = "failed"
    ERROR = "error"


@dataclass
class PriceObservation:
    """One extractor-produced price/MRP/availability triple.

    Ephemeral: only ever persisted through a reconciled
    :class:`PriceRecord`.
    """

    price: float
    mrp: float
    available: bool = True
    platform_id: str = ""
    product_name: str = ""

    def to_dict(self) -> dict[str, object]:
        """Serialise to the shape returned by the invocation surface."""
        return {
            "price": self.price,
            "mrp": self.mrp,
            "available": self.available,
        }


@dataclass
class PriceRecord:
    """The single current price row for a product on a platform."""

    product_id: str
    platform_id: str
    price: float
    mrp: float
    discount: int = 0
    available: bool = True
    price_change: float = 0.0
    last_updated: datetime = field(default_factory=datetime.now)
    location_pincode: str = ""


@dataclass(frozen=True)
class PriceHistoryEntry:
    """Snapshot of a record's price *before* it was overwritten."""

    product_id: str
    platform_id: str
    price: float
    mrp: float
    recorded_at: datetime


@dataclass(frozen=True)
class ScrapeLogEntry:
    """Audit row for one scrape attempt."""

    product_id: str | None
    platform_id: str
    status: ScrapeStatus
    error_message: str | None = None
    scraped_at: datetime = field(default_factory=datetime.now)


def cheapest_price(
    records: list[PriceRecord],
) -> PriceRecord | None:
    """Return the lowest-priced available record, if any."""
    available = [r for r in records if r.available]
    if not available:
        return None
    return min(available, key=lambda r: r.price)
