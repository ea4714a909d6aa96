from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Optional

from .normalize import clean_optional, coerce_count, coerce_flag

ALL_CATEGORIES = "all"
DEFAULT_LOW_STOCK_THRESHOLD = 10


class SortOption(str, enum.Enum):
    NAME = "name"
    CATEGORY = "category"
    QUANTITY_ASC = "quantity-asc"
    QUANTITY_DESC = "quantity-desc"
    FAVORITES = "favorites"

    @classmethod
    def parse(cls, value: Any) -> "SortOption":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown sort option: {value!r}") from None


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    quantity: int = 0
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    is_favorite: bool = False
    notes: Optional[str] = None
    image_url: Optional[str] = None
    barcode: Optional[str] = None

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity == 0

    @property
    def is_low_stock(self) -> bool:
        """True when 0 < quantity < low_stock_threshold."""
        return 0 < self.quantity < self.low_stock_threshold

    def with_changes(self, **changes: Any) -> "Product":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the persisted/exported field names."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "isFavorite": self.is_favorite,
            "lowStockThreshold": self.low_stock_threshold,
        }
        for key, value in (("notes", self.notes), ("imageUrl", self.image_url), ("barcode", self.barcode)):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Build a Product from its persisted form.

        Raises ValueError when id, name or category are missing or blank.
        """
        if not isinstance(data, dict):
            raise ValueError("product entry must be an object")
        pid = clean_optional(data.get("id"))
        name = clean_optional(data.get("name"))
        category = clean_optional(data.get("category"))
        if not pid or not name or not category:
            raise ValueError("product entry requires id, name and category")
        return cls(
            id=pid,
            name=name,
            category=category,
            quantity=coerce_count(data.get("quantity")),
            low_stock_threshold=coerce_count(data.get("lowStockThreshold"), DEFAULT_LOW_STOCK_THRESHOLD),
            is_favorite=coerce_flag(data.get("isFavorite")),
            notes=clean_optional(data.get("notes")),
            image_url=clean_optional(data.get("imageUrl")),
            barcode=clean_optional(data.get("barcode")),
        )


@dataclass(frozen=True)
class ViewParams:
    """Ephemeral catalog view parameters (never persisted)."""

    search_text: str = ""
    category: str = ALL_CATEGORIES
    sort: SortOption = SortOption.NAME
    low_stock_only: bool = False

    def with_changes(self, **changes: Any) -> "ViewParams":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search": self.search_text,
            "category": self.category,
            "sort": self.sort.value,
            "lowStockOnly": self.low_stock_only,
        }


@dataclass(frozen=True)
class Normal:
    """Recount workflow idle state."""

    name: str = field(default="normal", init=False)


@dataclass(frozen=True)
class Recounting:
    """Recount in progress; ``marked`` holds ids to zero on commit."""

    marked: FrozenSet[str] = frozenset()
    name: str = field(default="recounting", init=False)
