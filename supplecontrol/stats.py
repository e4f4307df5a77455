"""Inventory statistics and inventory-table helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from .expiry import days_until_expiry, parse_expiration, status_for_days
from .models import ExpiryStatus, Product, ProductCategory

TOP_CATEGORIES_LIMIT = 6


@dataclass
class InventoryStats:
    expired: int = 0
    warning: int = 0
    good: int = 0
    total: int = 0
    category_counts: dict[str, int] = field(default_factory=dict)

    @property
    def unresolved(self) -> int:
        """Products whose expiration date could not be resolved."""
        return self.total - (self.expired + self.warning + self.good)

    def top_categories(self, limit: int = TOP_CATEGORIES_LIMIT) -> list[tuple[str, int]]:
        """Categories by descending count; ties keep first-encounter order."""
        ranked = sorted(
            self.category_counts.items(), key=lambda kv: kv[1], reverse=True
        )
        return ranked[:limit]

    def status_distribution(self) -> list[tuple[ExpiryStatus, int]]:
        """Non-zero status counts, most urgent first."""
        pairs = [
            (ExpiryStatus.EXPIRED, self.expired),
            (ExpiryStatus.WARNING, self.warning),
            (ExpiryStatus.GOOD, self.good),
        ]
        return [(status, count) for status, count in pairs if count > 0]

    def to_dict(self) -> dict:
        return {
            "expired": self.expired,
            "warning": self.warning,
            "good": self.good,
            "total": self.total,
            "unresolved": self.unresolved,
            "category_counts": dict(self.category_counts),
            "top_categories": [
                {"category": name, "count": count}
                for name, count in self.top_categories()
            ],
        }


def compute_stats(
    products: Iterable[Product], today: date | None = None
) -> InventoryStats:
    """Aggregate status counts and the category histogram.

    Products with an unresolvable expiration date are counted in ``total``
    and their category, but in none of the status buckets.
    """
    if today is None:
        today = date.today()

    stats = InventoryStats()
    for product in products:
        stats.total += 1

        days = days_until_expiry(product.expiration_date, today)
        if days is not None:
            match status_for_days(days):
                case ExpiryStatus.EXPIRED:
                    stats.expired += 1
                case ExpiryStatus.WARNING:
                    stats.warning += 1
                case ExpiryStatus.GOOD:
                    stats.good += 1

        label = (product.category or ProductCategory.OTHER).value
        stats.category_counts[label] = stats.category_counts.get(label, 0) + 1
    return stats


def search_products(products: Iterable[Product], term: str) -> list[Product]:
    """Case-insensitive match on name, category label or brand."""
    needle = term.strip().lower()
    if not needle:
        return list(products)
    return [
        p
        for p in products
        if needle in p.name.lower()
        or needle in p.category.value.lower()
        or needle in p.brand.lower()
    ]


def sort_by_expiration(products: Iterable[Product]) -> list[Product]:
    """Soonest expiration first; unresolvable dates go last."""

    def key(p: Product) -> tuple[int, date]:
        exp = parse_expiration(p.expiration_date)
        if exp is None:
            return (1, date.max)
        return (0, exp)

    return sorted(products, key=key)


def days_remaining_label(days: int | None) -> str:
    if days is None:
        return "Data inválida"
    if days < 0:
        return f"Vencido há {abs(days)} dias"
    if days == 0:
        return "Vence hoje"
    return f"Vence em {days} dias"
