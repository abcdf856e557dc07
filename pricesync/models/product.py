# pricesync/models/product.py

"""Catalog data models: products and the platforms they are sold on."""

from dataclasses import dataclass


@dataclass
class Product:
    """A catalog product whose prices are tracked across platforms."""

    id: str
    name: str
    brand: str = ""
    size: str = ""
    category: str = ""
    barcode: str = ""
    image: str = ""

    @property
    def search_name(self) -> str:
        """Query string sent to each platform's search page."""
        parts = (self.brand, self.name, self.size)
        return " ".join(p.strip() for p in parts if p.strip())


@dataclass(frozen=True)
class Platform:
    """A retail platform prices are compared across."""

    id: str
    name: str
    logo: str = ""
    color: str = ""
    base_url: str = ""
