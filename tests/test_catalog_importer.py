# tests/test_catalog_importer.py

"""Tests for CSV/JSON catalog import."""

import json
import tempfile
import unittest
from pathlib import Path

from pricesync.storage.catalog_importer import import_catalog, read_products
from pricesync.storage.price_store import PriceStore

CSV_TEXT = (
    "id,name,brand,size,category,barcode\n"
    "milk-500,Taaza Toned Milk,Amul,500 ml,Dairy,8901262010016\n"
    ",,Nobody,,,\n"
    "salt-1,Iodised Salt,Tata,1 kg,Staples,\n"
)


class TestReadProducts(unittest.TestCase):
    """read_products parsing rules."""

    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp())

    def _write(self, name: str, text: str) -> Path:
        path = self.tmp_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_csv_rows_without_name_dropped(self) -> None:
        products = read_products(self._write("catalog.csv", CSV_TEXT))
        self.assertEqual([p.id for p in products], ["milk-500", "salt-1"])
        self.assertEqual(products[0].search_name, "Amul Taaza Toned Milk 500 ml")
        self.assertEqual(products[1].barcode, "")

    def test_json_list(self) -> None:
        path = self._write("catalog.json", json.dumps([
            {"id": "ghee-1", "name": "Ghee", "brand": "Aavin", "size": 500},
            {"brand": "NoName"},
            "not an object",
        ]))
        products = read_products(path)
        self.assertEqual(len(products), 1)
        self.assertEqual(products[0].size, "500")

    def test_json_must_be_list(self) -> None:
        path = self._write("catalog.json", json.dumps({"name": "Ghee"}))
        with self.assertRaises(ValueError):
            read_products(path)

    def test_unsupported_suffix(self) -> None:
        with self.assertRaises(ValueError):
            read_products(self._write("catalog.xlsx", ""))


class TestImportCatalog(unittest.TestCase):
    """import_catalog writes into the store."""

    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.store = PriceStore(db_path=self.tmp_dir / "test.db")

    def tearDown(self) -> None:
        self.store.close()

    def test_import_then_reimport(self) -> None:
        """Re-importing the same file updates rather than duplicates."""
        path = self.tmp_dir / "catalog.csv"
        path.write_text(CSV_TEXT, encoding="utf-8")
        self.assertEqual(import_catalog(self.store, path), 2)
        self.assertEqual(import_catalog(self.store, path), 2)
        self.assertEqual(len(self.store.list_products()), 2)


if __name__ == "__main__":
    unittest.main()
