"""Catalog query pipeline: category → search → low-stock → sort."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pyuca import Collator

from ..domain.models import ALL_CATEGORIES, Product, SortOption, ViewParams
from .store import product_payload

EMPTY_STORE = "empty-store"
NO_MATCHES = "no-matches"


@lru_cache(maxsize=1)
def _collator() -> Collator:
    # Loads the DUCET table once per process.
    return Collator()


def _text_key(value: str) -> Tuple[int, ...]:
    return _collator().sort_key(value)


def _matches_search(product: Product, text: str, lowered: str) -> bool:
    for field in (product.name, product.category, product.notes):
        if field and lowered in field.lower():
            return True
    return bool(product.barcode) and text in product.barcode


def sort_products(products: Iterable[Product], option: SortOption) -> List[Product]:
    """Stable sort for the active option; ties keep their prior order."""
    items = list(products)
    if option is SortOption.NAME:
        return sorted(items, key=lambda p: _text_key(p.name))
    if option is SortOption.CATEGORY:
        return sorted(items, key=lambda p: _text_key(p.category))
    if option is SortOption.QUANTITY_ASC:
        return sorted(items, key=lambda p: p.quantity)
    if option is SortOption.QUANTITY_DESC:
        return sorted(items, key=lambda p: -p.quantity)
    if option is SortOption.FAVORITES:
        return sorted(items, key=lambda p: not p.is_favorite)
    return items


def derive(products: Sequence[Product], params: ViewParams) -> Tuple[Product, ...]:
    """Return the visible product sequence for ``params``.

    Pure: the input sequence is never modified.
    """
    filtered: Iterable[Product] = products

    if params.category != ALL_CATEGORIES:
        filtered = [p for p in filtered if p.category == params.category]

    if params.search_text:
        lowered = params.search_text.lower()
        filtered = [p for p in filtered if _matches_search(p, params.search_text, lowered)]

    if params.low_stock_only:
        filtered = [p for p in filtered if p.is_low_stock]

    return tuple(sort_products(filtered, params.sort))


def categories(products: Iterable[Product]) -> List[str]:
    """Category filter options: "all" then distinct categories by first appearance."""
    seen: Dict[str, None] = {}
    for p in products:
        seen.setdefault(p.category, None)
    return [ALL_CATEGORIES, *seen.keys()]


@dataclass(frozen=True)
class CatalogView:
    items: Tuple[Product, ...]
    total: int
    params: ViewParams

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def empty_state(self) -> Optional[str]:
        if self.total == 0:
            return EMPTY_STORE
        if not self.items:
            return NO_MATCHES
        return None

    def to_dict(self, **extra: Any) -> Dict[str, Any]:
        payload = {
            "items": [product_payload(p) for p in self.items],
            "count": self.count,
            "total": self.total,
            "emptyState": self.empty_state,
            "view": self.params.to_dict(),
        }
        payload.update(extra)
        return payload


def build_view(products: Sequence[Product], params: ViewParams) -> CatalogView:
    return CatalogView(items=derive(products, params), total=len(products), params=params)
