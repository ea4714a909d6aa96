from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from ..domain.models import Product
from ..logging import get_logger
from .errors import NotFoundError, ValidationError
from .storage import SlotStorage


LOG = get_logger("inventory-store")


class ProductStore:
    """Authoritative ordered product list backed by one persistent slot.

    The list is loaded once on construction. Every mutation replaces the
    in-memory snapshot and re-saves the whole sequence.
    """

    def __init__(self, storage: SlotStorage, key: str = "products") -> None:
        self.storage = storage
        self.key = key
        self._products: Tuple[Product, ...] = self._load()

    def _load(self) -> Tuple[Product, ...]:
        raw = self.storage.load(self.key)
        if raw is None:
            LOG.info(f"No stored products under '{self.key}'; starting empty")
            return ()
        if not isinstance(raw, list):
            LOG.warning(f"Stored slot '{self.key}' is not a list; starting empty")
            return ()
        products = []
        seen = set()
        for idx, entry in enumerate(raw):
            try:
                product = Product.from_dict(entry)
            except ValueError as exc:
                LOG.warning(f"Skipping stored entry #{idx}: {exc}")
                continue
            if product.id in seen:
                LOG.warning(f"Skipping stored entry #{idx}: duplicate id {product.id!r}")
                continue
            seen.add(product.id)
            products.append(product)
        LOG.info(f"Loaded {len(products)} product(s) from slot '{self.key}'")
        return tuple(products)

    def _commit(self, products: Sequence[Product]) -> None:
        self._products = tuple(products)
        self.storage.save(self.key, [p.to_dict() for p in self._products])

    # ---------------- reads ----------------
    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    def __len__(self) -> int:
        return len(self._products)

    def ids(self) -> set:
        return {p.id for p in self._products}

    def find(self, product_id: str) -> Optional[Product]:
        for p in self._products:
            if p.id == product_id:
                return p
        return None

    def get(self, product_id: str) -> Product:
        product = self.find(product_id)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}", key=product_id)
        return product

    def new_id(self) -> str:
        existing = self.ids()
        while True:
            candidate = uuid.uuid4().hex
            if candidate not in existing:
                return candidate

    # ---------------- mutations ----------------
    def insert(self, product: Product) -> Product:
        if self.find(product.id) is not None:
            raise ValidationError(f"Duplicate product id: {product.id}")
        self._commit([*self._products, product])
        LOG.info(f"Inserted product {product.id} ({product.name!r})")
        return product

    def replace(self, product: Product) -> Product:
        self.get(product.id)
        self._commit([product if p.id == product.id else p for p in self._products])
        LOG.info(f"Updated product {product.id} ({product.name!r})")
        return product

    def update(self, product_id: str, **changes: Any) -> Product:
        return self.replace(self.get(product_id).with_changes(**changes))

    def remove(self, product_id: str) -> Product:
        product = self.get(product_id)
        self._commit([p for p in self._products if p.id != product_id])
        LOG.info(f"Removed product {product_id} ({product.name!r})")
        return product

    def zero_out(self, product_ids: Iterable[str]) -> int:
        """Set quantity to 0 for every listed id in one batched save."""
        targets = set(product_ids)
        if not targets:
            return 0
        changed = 0
        updated = []
        for p in self._products:
            if p.id in targets:
                changed += 1
                updated.append(p.with_changes(quantity=0))
            else:
                updated.append(p)
        self._commit(updated)
        LOG.info(f"Zeroed quantity of {changed} product(s)")
        return changed

    def replace_all(self, products: Sequence[Product]) -> None:
        ids = [p.id for p in products]
        if len(set(ids)) != len(ids):
            raise ValidationError("Product ids must be unique")
        self._commit(products)
        LOG.info(f"Replaced store contents with {len(products)} product(s)")


def product_payload(product: Product) -> Dict[str, Any]:
    """Serialized product plus derived stock flags for API/CLI output."""
    data = product.to_dict()
    data["isLowStock"] = product.is_low_stock
    data["isOutOfStock"] = product.is_out_of_stock
    return data
