from __future__ import annotations

import json
import uuid
from typing import Any, List, Sequence

from ..domain.models import DEFAULT_LOW_STOCK_THRESHOLD, Product
from ..domain.normalize import clean_optional, coerce_count, coerce_flag
from ..logging import get_logger
from .constants import FALLBACK_CATEGORY
from .errors import ImportFormatError


LOG = get_logger("inventory-transfer")

REQUIRED_IMPORT_KEYS = ("name", "quantity")


def export_products(products: Sequence[Product]) -> str:
    """Serialize the full catalog as a pretty-printed JSON array."""
    return json.dumps([p.to_dict() for p in products], ensure_ascii=False, indent=2)


def parse_import(text: str) -> List[Product]:
    """Parse an import payload into Products.

    The payload must be a JSON array of objects each carrying ``name`` and
    ``quantity``. Raises ImportFormatError otherwise.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise ImportFormatError(f"Import is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ImportFormatError("Import must be a JSON array of products")

    products: List[Product] = []
    seen = set()
    for idx, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ImportFormatError(f"Entry #{idx} is not an object")
        missing = [k for k in REQUIRED_IMPORT_KEYS if k not in entry]
        if missing:
            raise ImportFormatError(f"Entry #{idx} is missing {', '.join(missing)}")
        product = _normalize_entry(entry, idx)
        if product.id in seen:
            fresh = uuid.uuid4().hex
            LOG.warning(f"Entry #{idx} reuses id {product.id!r}; assigning {fresh}")
            product = product.with_changes(id=fresh)
        seen.add(product.id)
        products.append(product)
    LOG.info(f"Parsed {len(products)} product(s) from import")
    return products


def _normalize_entry(entry: Any, idx: int) -> Product:
    name = clean_optional(entry.get("name"))
    if not name:
        raise ImportFormatError(f"Entry #{idx} has an empty name")
    return Product(
        id=clean_optional(entry.get("id")) or uuid.uuid4().hex,
        name=name,
        category=clean_optional(entry.get("category")) or FALLBACK_CATEGORY,
        quantity=coerce_count(entry.get("quantity")),
        low_stock_threshold=coerce_count(entry.get("lowStockThreshold"), DEFAULT_LOW_STOCK_THRESHOLD),
        is_favorite=coerce_flag(entry.get("isFavorite")),
        notes=clean_optional(entry.get("notes")),
        image_url=clean_optional(entry.get("imageUrl")),
        barcode=clean_optional(entry.get("barcode")),
    )
