"""SQLite-backed persistence for the product list."""

from .schema import ensure_schema
from .seed import seed_products
from .store import ProductStore

__all__ = [
    "ProductStore",
    "ensure_schema",
    "seed_products",
]
