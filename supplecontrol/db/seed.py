"""Example products used when no saved inventory exists."""

from __future__ import annotations

from datetime import date, timedelta

from ..models import Product, ProductCategory

# (id, name, brand, category, quantity, batch, days from today)
_SEED = [
    ("1", "Whey Gold Standard", "Optimum", ProductCategory.WHEY_PROTEIN, 12, "L882", -5),
    ("2", "Creatina Monohidratada", "Growth", ProductCategory.CREATINE, 45, "L991", 15),
    ("3", "Multivitamínico Daily", "Max Titanium", ProductCategory.VITAMINS, 30, "L102", 180),
    ("4", "BCAA 2400", "Probiótica", ProductCategory.AMINOACIDS, 8, "L332", 45),
    ("5", "C4 Beta Pump", "New Millen", ProductCategory.PRE_WORKOUT, 20, "L551", 300),
]


def seed_products(today: date | None = None) -> list[Product]:
    """Return the five seed products, dated relative to ``today``.

    One is expired, two are inside the warning window and two are good.
    """
    if today is None:
        today = date.today()
    return [
        Product(
            id=pid,
            name=name,
            brand=brand,
            category=category,
            batch_number=batch,
            quantity=qty,
            expiration_date=(today + timedelta(days=offset)).isoformat(),
        )
        for pid, name, brand, category, qty, batch, offset in _SEED
    ]
