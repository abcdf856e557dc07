# pricesync/storage/price_store.py

"""SQLite-backed catalog, current-price and audit store."""

import logging
import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from pricesync.config.settings import Settings
from pricesync.errors import PersistenceError
from pricesync.models.price import (
    PriceHistoryEntry,
    PriceRecord,
    ScrapeLogEntry,
    ScrapeStatus,
)
from pricesync.models.product import Platform, Product

logger = logging.getLogger("pricesync.store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id         TEXT PRIMARY KEY,
    name       TEXT NOT NULL,
    brand      TEXT NOT NULL DEFAULT '',
    size       TEXT NOT NULL DEFAULT '',
    category   TEXT NOT NULL DEFAULT '',
    barcode    TEXT NOT NULL DEFAULT '',
    image      TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS platforms (
    id         TEXT PRIMARY KEY,
    name       TEXT NOT NULL,
    logo       TEXT NOT NULL DEFAULT '',
    color      TEXT NOT NULL DEFAULT '',
    base_url   TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS price_data (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id       TEXT    NOT NULL
                     REFERENCES products(id) ON DELETE CASCADE,
    platform_id      TEXT    NOT NULL REFERENCES platforms(id),
    price            REAL    NOT NULL,
    mrp              REAL    NOT NULL,
    discount         INTEGER NOT NULL DEFAULT 0,
    available        INTEGER NOT NULL DEFAULT 1,
    price_change     REAL,
    location_pincode TEXT,
    last_updated     TEXT    NOT NULL,
    UNIQUE (product_id, platform_id)
);

CREATE TABLE IF NOT EXISTS price_history (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id  TEXT NOT NULL
                REFERENCES products(id) ON DELETE CASCADE,
    platform_id TEXT NOT NULL REFERENCES platforms(id),
    price       REAL NOT NULL,
    mrp         REAL NOT NULL,
    recorded_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS scrape_logs (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id    TEXT REFERENCES products(id) ON DELETE CASCADE,
    platform_id   TEXT,
    status        TEXT NOT NULL,
    error_message TEXT,
    scraped_at    TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_history_product_date
    ON price_history(product_id, platform_id, recorded_at);
CREATE INDEX IF NOT EXISTS idx_logs_product_date
    ON scrape_logs(product_id, scraped_at);
"""

_PRODUCT_COLUMNS = "id, name, brand, size, category, barcode, image"

_RECORD_COLUMNS = (
    "product_id, platform_id, price, mrp, discount, available, "
    "price_change, location_pincode, last_updated"
)


def _row_to_product(r: tuple[Any, ...]) -> Product:
    return Product(
        id=str(r[0]),
        name=str(r[1]),
        brand=str(r[2] or ""),
        size=str(r[3] or ""),
        category=str(r[4] or ""),
        barcode=str(r[5] or ""),
        image=str(r[6] or ""),
    )


def _row_to_record(r: tuple[Any, ...]) -> PriceRecord:
    return PriceRecord(
        product_id=str(r[0]),
        platform_id=str(r[1]),
        price=float(r[2]),
        mrp=float(r[3]),
        discount=int(r[4]),
        available=bool(r[5]),
        price_change=float(r[6] or 0.0),
        location_pincode=str(r[7] or ""),
        last_updated=datetime.fromisoformat(str(r[8])),
    )


def _write_record(cur: sqlite3.Cursor, record: PriceRecord) -> None:
    cur.execute(
        f"INSERT INTO price_data ({_RECORD_COLUMNS}) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
        "ON CONFLICT(product_id, platform_id) DO UPDATE SET "
        "price=excluded.price, mrp=excluded.mrp, "
        "discount=excluded.discount, "
        "available=excluded.available, "
        "price_change=excluded.price_change, "
        "location_pincode=excluded.location_pincode, "
        "last_updated=excluded.last_updated",
        (
            record.product_id,
            record.platform_id,
            record.price,
            record.mrp,
            record.discount,
            int(record.available),
            record.price_change,
            record.location_pincode,
            record.last_updated.isoformat(),
        ),
    )


def _write_history(cur: sqlite3.Cursor, entry: PriceHistoryEntry) -> None:
    cur.execute(
        "INSERT INTO price_history "
        "(product_id, platform_id, price, mrp, recorded_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (
            entry.product_id,
            entry.platform_id,
            entry.price,
            entry.mrp,
            entry.recorded_at.isoformat(),
        ),
    )


class PriceStore:
    """SQLite-backed store for products, current prices and audit trails.

    Every ``sqlite3.Error`` surfaces as :class:`PersistenceError`.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        seed: bool = True,
    ) -> None:
        path = db_path or Settings.PRICE_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(
                str(path), check_same_thread=False,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            msg = f"Cannot open price store at {path}: {exc}"
            raise PersistenceError(msg) from exc
        logger.debug("PriceStore opened at %s", path)
        if seed:
            self.seed_platforms()

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    @contextmanager
    def _guard(self, action: str) -> Iterator[sqlite3.Cursor]:
        """Run a unit of work, committing on success.

        Rolls back and raises :class:`PersistenceError` on failure.
        """
        try:
            cur = self._conn.cursor()
            yield cur
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            logger.error("Store %s failed: %s", action, exc)
            msg = f"{action} failed: {exc}"
            raise PersistenceError(msg) from exc

    # ── Platforms ────────────────────────────────────────

    def seed_platforms(
        self,
        platforms: list[dict[str, str]] | None = None,
    ) -> int:
        """Insert registry platforms that are not yet stored.

        Returns the number of rows inserted.
        """
        entries = platforms or Settings.AVAILABLE_PLATFORMS
        ts = datetime.now().isoformat()
        with self._guard("seed platforms") as cur:
            before = self._conn.total_changes
            cur.executemany(
                "INSERT OR IGNORE INTO platforms "
                "(id, name, logo, color, base_url, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (
                        p["id"],
                        p.get("label", p["id"]),
                        p.get("logo", ""),
                        p.get("color", ""),
                        p.get("base_url"),
                        ts,
                    )
                    for p in entries
                ],
            )
            inserted = self._conn.total_changes - before
        if inserted:
            logger.info("Seeded %d platforms", inserted)
        return inserted

    def list_platforms(self) -> list[Platform]:
        """Return every stored platform in insertion order."""
        with self._guard("list platforms") as cur:
            rows = cur.execute(
                "SELECT id, name, logo, color, base_url "
                "FROM platforms ORDER BY rowid",
            ).fetchall()
        return [
            Platform(
                id=r[0],
                name=r[1],
                logo=r[2] or "",
                color=r[3] or "",
                base_url=r[4] or "",
            )
            for r in rows
        ]

    # ── Catalog ──────────────────────────────────────────

    def add_product(self, product: Product) -> Product:
        """Insert or update a catalog product.

        A product without an id is given a fresh UUID.
        """
        if not product.id:
            product.id = str(uuid.uuid4())
        ts = datetime.now().isoformat()
        with self._guard("add product") as cur:
            cur.execute(
                "INSERT INTO products "
                "(id, name, brand, size, category, barcode, image, "
                " created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "name=excluded.name, brand=excluded.brand, "
                "size=excluded.size, category=excluded.category, "
                "barcode=excluded.barcode, image=excluded.image, "
                "updated_at=excluded.updated_at",
                (
                    product.id,
                    product.name,
                    product.brand,
                    product.size,
                    product.category,
                    product.barcode,
                    product.image or None,
                    ts,
                    ts,
                ),
            )
        return product

    def get_product(self, product_id: str) -> Product | None:
        """Fetch one product by id."""
        with self._guard("get product") as cur:
            row = cur.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?",
                (product_id,),
            ).fetchone()
        return _row_to_product(row) if row else None

    def list_products(self) -> list[Product]:
        """Return every catalog product, ordered by name."""
        with self._guard("list products") as cur:
            rows = cur.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM products "
                "ORDER BY name, id",
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def search_products(
        self,
        search: str | None = None,
        barcode: str | None = None,
        category: str | None = None,
    ) -> list[Product]:
        """Find products by exact barcode or free-text search.

        A barcode takes precedence over *search*.  Free text is a
        case-insensitive substring match on name, brand, barcode
        and category.  *category* narrows either form.
        """
        clauses: list[str] = []
        params: list[str] = []
        if barcode:
            clauses.append("barcode = ?")
            params.append(barcode)
        elif search:
            like = f"%{search.lower()}%"
            clauses.append(
                "(LOWER(name) LIKE ? OR LOWER(brand) LIKE ? "
                " OR LOWER(barcode) LIKE ? OR LOWER(category) LIKE ?)"
            )
            params.extend([like] * 4)
        if category:
            clauses.append("category = ?")
            params.append(category)

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._guard("search products") as cur:
            rows = cur.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM products{where} "
                "ORDER BY name, id",
                params,
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    # ── Current prices ───────────────────────────────────

    def get_price_record(
        self, product_id: str, platform_id: str,
    ) -> PriceRecord | None:
        """Return the live record for (product, platform), if any."""
        with self._guard("read price record") as cur:
            row = cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM price_data "
                "WHERE product_id = ? AND platform_id = ?",
                (product_id, platform_id),
            ).fetchone()
        return _row_to_record(row) if row else None

    def get_prices_for_product(
        self, product_id: str,
    ) -> list[PriceRecord]:
        """Return every live record of a product, cheapest first."""
        with self._guard("read product prices") as cur:
            rows = cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM price_data "
                "WHERE product_id = ? ORDER BY price, platform_id",
                (product_id,),
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def upsert_price_record(self, record: PriceRecord) -> None:
        """Write *record*, replacing any row with the same key."""
        with self._guard("upsert price record") as cur:
            _write_record(cur, record)

    def apply_reconciliation(
        self,
        record: PriceRecord,
        history: PriceHistoryEntry | None,
    ) -> None:
        """Write a history snapshot and the new record atomically.

        Either both rows land or neither does, so a failed overwrite
        never leaves a snapshot of a change that did not happen.
        """
        with self._guard("apply reconciliation") as cur:
            if history is not None:
                _write_history(cur, history)
            _write_record(cur, record)

    # ── History ──────────────────────────────────────────

    def insert_price_history(self, entry: PriceHistoryEntry) -> None:
        """Append one history snapshot."""
        with self._guard("insert price history") as cur:
            _write_history(cur, entry)

    def get_price_history(
        self,
        product_id: str,
        platform_id: str | None = None,
    ) -> list[PriceHistoryEntry]:
        """Return history snapshots for a product, oldest first."""
        sql = (
            "SELECT product_id, platform_id, price, mrp, recorded_at "
            "FROM price_history WHERE product_id = ?"
        )
        params: list[str] = [product_id]
        if platform_id:
            sql += " AND platform_id = ?"
            params.append(platform_id)
        sql += " ORDER BY recorded_at ASC, id ASC"
        with self._guard("read price history") as cur:
            rows = cur.execute(sql, params).fetchall()
        return [
            PriceHistoryEntry(
                product_id=r[0],
                platform_id=r[1],
                price=r[2],
                mrp=r[3],
                recorded_at=datetime.fromisoformat(r[4]),
            )
            for r in rows
        ]

    # ── Scrape logs ──────────────────────────────────────

    def insert_scrape_log(self, entry: ScrapeLogEntry) -> None:
        """Append one scrape-attempt audit row."""
        with self._guard("insert scrape log") as cur:
            cur.execute(
                "INSERT INTO scrape_logs "
                "(product_id, platform_id, status, error_message, "
                " scraped_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    entry.product_id,
                    entry.platform_id,
                    entry.status.value,
                    entry.error_message,
                    entry.scraped_at.isoformat(),
                ),
            )

    def get_scrape_logs(
        self,
        product_id: str | None = None,
        limit: int | None = None,
    ) -> list[ScrapeLogEntry]:
        """Return scrape log rows in write order."""
        sql = (
            "SELECT product_id, platform_id, status, error_message, "
            "scraped_at FROM scrape_logs"
        )
        params: list[object] = []
        if product_id is not None:
            sql += " WHERE product_id = ?"
            params.append(product_id)
        sql += " ORDER BY id ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self._guard("read scrape logs") as cur:
            rows = cur.execute(sql, params).fetchall()
        return [
            ScrapeLogEntry(
                product_id=r[0],
                platform_id=r[1],
                status=ScrapeStatus(r[2]),
                error_message=r[3],
                scraped_at=datetime.fromisoformat(r[4]),
            )
            for r in rows
        ]
