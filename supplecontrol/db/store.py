"""Product list CRUD backed by a single serialized JSON value."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from dataclasses import replace
from datetime import date
from pathlib import Path

from ..expiry import parse_expiration
from ..models import Product, ProductCategory
from .schema import ensure_schema
from .seed import seed_products

logger = logging.getLogger(__name__)


class ProductStore:
    """Owns the canonical product list.

    The whole list is stored as one JSON array under ``key`` in the
    ``kv_store`` table. It is read once, on first access, and written back
    after every mutation. A missing or corrupt value yields the seed
    products.
    """

    def __init__(
        self,
        db_path: str | Path = "~/.config/supplecontrol/inventory.db",
        key: str = "supplecontrol_inventory",
        today: date | None = None,
    ) -> None:
        self._db_path = db_path
        self._key = key
        self._today = today
        self._conn: sqlite3.Connection | None = None
        self._products: list[Product] | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> ProductStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def products(self) -> list[Product]:
        if self._products is None:
            self._products = self._load()
        return self._products

    def _load(self) -> list[Product]:
        row = self._get_conn().execute(
            "SELECT value FROM kv_store WHERE key = ?", (self._key,)
        ).fetchone()
        if row is None:
            logger.info("No saved inventory under %r, using seed data", self._key)
            return seed_products(self._today)

        try:
            records = json.loads(row["value"])
            if not isinstance(records, list):
                raise ValueError("saved inventory is not a JSON array")
            products = [Product.from_dict(r) for r in records]
            if len({p.id for p in products}) != len(products):
                raise ValueError("saved inventory has duplicate ids")
        except ValueError as e:
            logger.warning("Saved inventory is unreadable (%s), using seed data", e)
            return seed_products(self._today)
        return products

    def save(self) -> None:
        """Write the current list to the database."""
        payload = json.dumps(
            [p.to_dict() for p in self.products], ensure_ascii=False
        )
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO kv_store (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = datetime('now', 'localtime')""",
            (self._key, payload),
        )
        conn.commit()

    def list(self) -> list[Product]:
        """Return all products in insertion order."""
        return list(self.products)

    def get(self, product_id: str) -> Product | None:
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def create(
        self,
        name: str,
        expiration_date: str | date,
        *,
        brand: str = "",
        category: ProductCategory | str = ProductCategory.OTHER,
        batch_number: str = "",
        quantity: int = 0,
    ) -> Product:
        """Add a product under a freshly generated id.

        Raises:
            ValueError: If the name or expiration date is missing/invalid,
                or the quantity is negative.
        """
        product = Product(
            id=uuid.uuid4().hex,
            name=name,
            brand=brand,
            category=ProductCategory.coerce(category),
            batch_number=batch_number,
            quantity=quantity,
            expiration_date=_normalize_date(expiration_date),
        )
        _validate(product)
        self.products.append(product)
        self.save()
        logger.info("Created product %s (%s)", product.id, product.name)
        return product

    def update(self, product: Product) -> Product:
        """Replace the stored product that has the same id.

        A normalized copy of ``product`` is stored and returned; the
        argument itself is left untouched.

        Raises:
            KeyError: If no product has that id.
            ValueError: If the product fails validation.
        """
        product = replace(
            product,
            category=ProductCategory.coerce(product.category),
            expiration_date=_normalize_date(product.expiration_date),
        )
        _validate(product)
        for i, existing in enumerate(self.products):
            if existing.id == product.id:
                self.products[i] = product
                self.save()
                logger.info("Updated product %s", product.id)
                return product
        raise KeyError(product.id)

    def delete(self, product_id: str) -> bool:
        """Remove a product. Returns False (and writes nothing) if absent."""
        before = len(self.products)
        self._products = [p for p in self.products if p.id != product_id]
        if len(self._products) == before:
            return False
        self.save()
        logger.info("Deleted product %s", product_id)
        return True


def _normalize_date(value: str | date) -> str:
    parsed = parse_expiration(value)
    return parsed.isoformat() if parsed is not None else ""


def _validate(product: Product) -> None:
    if not product.name.strip():
        raise ValueError("product name is required")
    if not product.expiration_date:
        raise ValueError("a valid expiration date (YYYY-MM-DD) is required")
    if not isinstance(product.quantity, int) or product.quantity < 0:
        raise ValueError(f"quantity must be a non-negative integer: {product.quantity!r}")
