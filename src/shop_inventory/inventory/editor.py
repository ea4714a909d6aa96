from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..domain.models import DEFAULT_LOW_STOCK_THRESHOLD, Product
from ..domain.normalize import clean_optional, coerce_count, coerce_flag
from ..logging import get_logger
from .constants import DEFAULT_CATEGORIES, NEW_CATEGORY_OPTION
from .errors import ValidationError
from .store import ProductStore


LOG = get_logger("inventory-editor")


@dataclass
class ProductForm:
    """Raw editor input. Numeric fields may still be text."""

    name: str = ""
    category: str = DEFAULT_CATEGORIES[0]
    new_category: Optional[str] = None  # set => free-text category mode
    quantity: Any = 0
    low_stock_threshold: Any = DEFAULT_LOW_STOCK_THRESHOLD
    notes: str = ""
    image_url: str = ""
    barcode: str = ""
    is_favorite: bool = False

    @property
    def is_new_category(self) -> bool:
        return self.new_category is not None or self.category == NEW_CATEGORY_OPTION

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any], base: Optional["ProductForm"] = None) -> "ProductForm":
        """Overlay API/CLI field names (camelCase) on ``base`` or a blank form."""
        form = base or cls()
        mapping = {
            "name": "name",
            "category": "category",
            "newCategory": "new_category",
            "quantity": "quantity",
            "lowStockThreshold": "low_stock_threshold",
            "notes": "notes",
            "imageUrl": "image_url",
            "barcode": "barcode",
            "isFavorite": "is_favorite",
        }
        for key, attr in mapping.items():
            if key in fields and fields[key] is not None:
                setattr(form, attr, fields[key])
        if fields.get("category") not in (None, NEW_CATEGORY_OPTION) and fields.get("newCategory") is None:
            form.new_category = None
        form.is_favorite = coerce_flag(form.is_favorite)
        return form


def open_form(existing: Optional[Product] = None, prefill: Optional[Mapping[str, Any]] = None) -> ProductForm:
    """Initial editor state for an edit (``existing``) or a create.

    A create may carry ``prefill`` (e.g. a scanned barcode); unspecified
    fields keep their blank-form defaults.
    """
    if existing is not None:
        custom = existing.category not in DEFAULT_CATEGORIES
        return ProductForm(
            name=existing.name,
            category=NEW_CATEGORY_OPTION if custom else existing.category,
            new_category=existing.category if custom else None,
            quantity=existing.quantity,
            low_stock_threshold=existing.low_stock_threshold,
            notes=existing.notes or "",
            image_url=existing.image_url or "",
            barcode=existing.barcode or "",
            is_favorite=existing.is_favorite,
        )
    return ProductForm.from_fields(prefill or {})


def resolve_category(form: ProductForm) -> str:
    if form.is_new_category:
        return (form.new_category or "").strip()
    return str(form.category or "").strip()


def build_product(form: ProductForm, product_id: str) -> Product:
    category = resolve_category(form)
    name = str(form.name or "").strip()
    if not name:
        raise ValidationError("Product name is required")
    if not category:
        raise ValidationError("Product category is required")
    return Product(
        id=product_id,
        name=name,
        category=category,
        quantity=coerce_count(form.quantity),
        low_stock_threshold=coerce_count(form.low_stock_threshold),
        is_favorite=bool(form.is_favorite),
        notes=clean_optional(form.notes),
        image_url=clean_optional(form.image_url),
        barcode=clean_optional(form.barcode),
    )


def save_product(store: ProductStore, form: ProductForm, existing_id: Optional[str] = None) -> Product:
    """Validate ``form`` and commit it: replace-by-id when editing, insert otherwise."""
    if existing_id is not None:
        store.get(existing_id)
        product = build_product(form, existing_id)
        return store.replace(product)
    product = build_product(form, store.new_id())
    LOG.debug(f"Creating product from form: {product}")
    return store.insert(product)


def form_payload(form: ProductForm) -> Dict[str, Any]:
    return {
        "name": form.name,
        "category": form.category,
        "newCategory": form.new_category,
        "quantity": form.quantity,
        "lowStockThreshold": form.low_stock_threshold,
        "notes": form.notes,
        "imageUrl": form.image_url,
        "barcode": form.barcode,
        "isFavorite": form.is_favorite,
        "categories": list(DEFAULT_CATEGORIES),
    }
