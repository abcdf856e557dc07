# pricesync/services/reconciler.py

"""Turns a fresh observation plus stored state into write instructions."""

from dataclasses import dataclass
from datetime import datetime

from pricesync.config.settings import Settings
from pricesync.errors import ReconciliationError
from pricesync.models.price import (
    PriceHistoryEntry,
    PriceObservation,
    PriceRecord,
)


@dataclass(frozen=True)
class Reconciliation:
    """What the persistence adapter should write for one platform."""

    record: PriceRecord
    history: PriceHistoryEntry | None


def compute_discount(price: float, mrp: float) -> int:
    """Whole-number percent off MRP."""
    if mrp <= 0:
        return 0
    return round((mrp - price) / mrp * 100)


def compute_price_change(previous: float, current: float) -> float:
    """Percent change from *previous* to *current*, one decimal place."""
    if previous <= 0:
        msg = f"Stored previous price must be positive, got {previous}"
        raise ReconciliationError(msg)
    return round((current - previous) / previous * 100, 1)


def reconcile(
    product_id: str,
    observation: PriceObservation,
    previous: PriceRecord | None,
    now: datetime | None = None,
    region: str | None = None,
) -> Reconciliation:
    """Decide the upsert payload and the optional history entry.

    A history entry is emitted only when a previous record exists,
    and it carries the *previous* price and MRP.  Performs no I/O.
    """
    ts = now or datetime.now()
    if previous is not None:
        price_change = compute_price_change(
            previous.price, observation.price
        )
        history: PriceHistoryEntry | None = PriceHistoryEntry(
            product_id=product_id,
            platform_id=observation.platform_id,
            price=previous.price,
            mrp=previous.mrp,
            recorded_at=ts,
        )
    else:
        price_change = 0.0
        history = None

    record = PriceRecord(
        product_id=product_id,
        platform_id=observation.platform_id,
        price=observation.price,
        mrp=observation.mrp,
        discount=compute_discount(observation.price, observation.mrp),
        available=observation.available,
        price_change=price_change,
        last_updated=ts,
        location_pincode=region or Settings.REGION_PINCODE,
    )
    return Reconciliation(record=record, history=history)
