"""Data models for supplement products and AI analysis results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


class ProductCategory(str, Enum):
    WHEY_PROTEIN = "Whey Protein"
    CREATINE = "Creatina"
    PRE_WORKOUT = "Pré-Treino"
    VITAMINS = "Vitaminas"
    AMINOACIDS = "Aminoácidos"
    ACCESSORIES = "Acessórios"
    BARS = "Barras de Proteína"
    OTHER = "Outros"

    @classmethod
    def coerce(cls, value: object) -> ProductCategory:
        """Map a stored label (or member name) to a category, ``OTHER`` if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value in (member.value, member.name):
                    return member
        return cls.OTHER


class ExpiryStatus(str, Enum):
    GOOD = "GOOD"
    WARNING = "WARNING"
    EXPIRED = "EXPIRED"


@dataclass
class Product:
    """A batch of a supplement product on the shelf."""

    id: str
    name: str
    brand: str = ""
    category: ProductCategory = ProductCategory.OTHER
    batch_number: str = ""
    quantity: int = 0
    expiration_date: str = ""  # YYYY-MM-DD

    def to_dict(self) -> dict:
        """Serialize using the storage field names."""
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "category": self.category.value,
            "batchNumber": self.batch_number,
            "quantity": self.quantity,
            "expirationDate": self.expiration_date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Product:
        """Build a product from its stored form.

        Raises:
            ValueError: If the record has no id or an invalid quantity.
        """
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError(f"invalid product record: {data!r}")
        try:
            quantity = int(data.get("quantity") or 0)
        except (TypeError, ValueError):
            raise ValueError(f"invalid quantity in record {data['id']!r}") from None
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            brand=str(data.get("brand", "") or ""),
            category=ProductCategory.coerce(data.get("category")),
            batch_number=str(data.get("batchNumber", "") or ""),
            quantity=quantity,
            expiration_date=str(data.get("expirationDate", "") or ""),
        )


PRIORITIES = ("high", "medium", "low")


@dataclass
class Suggestion:
    title: str
    description: str
    priority: str  # high / medium / low


@dataclass
class AnalysisResult:
    """Summary and tactical suggestions for at-risk stock."""

    summary: str
    suggestions: list[Suggestion] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
