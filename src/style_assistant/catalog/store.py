"""Read-only product catalog.

Loads the bundled JSON catalog files into immutable :class:`Product`
records, partitioned into topic buckets.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from style_assistant.exceptions import CatalogError
from style_assistant.models import Product

logger = structlog.get_logger(__name__)

_CATALOG_DIR = Path(__file__).parent / "data"

# Bucket name -> catalog file, in the order they make up the combined catalog
BUCKET_FILES: dict[str, str] = {
    "dress": "dress.json",
    "casual": "casual.json",
    "work": "work.json",
}


class CatalogStore:
    """Immutable set of products partitioned into named buckets.

    Parameters
    ----------
    buckets:
        Mapping of bucket name -> ordered products.  Product ids must be
        unique across all buckets.
    """

    def __init__(self, buckets: dict[str, list[Product]]) -> None:
        self._buckets: dict[str, tuple[Product, ...]] = {
            name: tuple(products) for name, products in buckets.items()
        }
        self._by_id: dict[str, Product] = {}
        for products in self._buckets.values():
            for product in products:
                if product.id in self._by_id:
                    raise CatalogError(f"Duplicate product id in catalog: {product.id}")
                self._by_id[product.id] = product

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @staticmethod
    def load_bucket(catalog_file: str, catalog_dir: Path = _CATALOG_DIR) -> list[Product]:
        """Load one bucket from a JSON catalog file.

        Raises
        ------
        CatalogError
            If the file is missing or a record fails validation.
        """
        catalog_path = catalog_dir / catalog_file
        if not catalog_path.exists():
            raise CatalogError(f"Catalog file not found: {catalog_path}")

        with open(catalog_path, encoding="utf-8") as f:
            records = json.load(f)

        try:
            return [Product.model_validate(record) for record in records]
        except ValidationError as exc:
            raise CatalogError(f"Invalid product record in {catalog_file}: {exc}") from exc

    @classmethod
    def load(cls, catalog_dir: Path = _CATALOG_DIR) -> CatalogStore:
        """Create the store from the bundled catalog files."""
        buckets = {
            name: cls.load_bucket(catalog_file, catalog_dir)
            for name, catalog_file in BUCKET_FILES.items()
        }
        store = cls(buckets)
        logger.info(
            "catalog_loaded",
            buckets={name: len(products) for name, products in buckets.items()},
            products=len(store),
        )
        return store

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def bucket(self, name: str) -> list[Product]:
        """Return the products of bucket *name* (empty for unknown names)."""
        return list(self._buckets.get(name, ()))

    def combined(self, limit: int | None = None) -> list[Product]:
        """Return every bucket concatenated in load order, optionally truncated."""
        products = [p for bucket in self._buckets.values() for p in bucket]
        return products[:limit] if limit is not None else products

    def get(self, product_id: str) -> Product | None:
        return self._by_id.get(product_id)

    @property
    def bucket_names(self) -> list[str]:
        return list(self._buckets)

    def __len__(self) -> int:
        return len(self._by_id)
