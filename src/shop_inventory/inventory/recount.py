from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from ..domain.models import Normal, Product, Recounting
from ..logging import get_logger
from .errors import RecountStateError
from .store import ProductStore, product_payload


LOG = get_logger("inventory-recount")

RecountState = Union[Normal, Recounting]


@dataclass(frozen=True)
class RecountResult:
    marked: int
    zeroed: int
    applied: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"marked": self.marked, "zeroed": self.zeroed, "applied": self.applied}


class RecountWorkflow:
    """Two-phase stock-take: mark depleted products, zero them all on finish.

    Marking never touches the store; ``finish`` applies every mark in one
    batched update (only when confirmed) and always returns to ``Normal``.
    """

    def __init__(self, store: ProductStore) -> None:
        self.store = store
        self.state: RecountState = Normal()

    @property
    def active(self) -> bool:
        return isinstance(self.state, Recounting)

    @property
    def marked(self) -> frozenset:
        if isinstance(self.state, Recounting):
            return self.state.marked
        return frozenset()

    def start(self) -> None:
        if self.active:
            raise RecountStateError("Recount already in progress")
        self.state = Recounting()
        LOG.info("Recount started")

    def recountable(self) -> Tuple[Product, ...]:
        """Products eligible for marking (quantity > 0), in store order."""
        return tuple(p for p in self.store.products if p.quantity > 0)

    def mark(self, product_id: str) -> bool:
        """Mark a product for zeroing. Returns False when it was already marked."""
        if not isinstance(self.state, Recounting):
            raise RecountStateError("Start a recount before marking products")
        product = self.store.get(product_id)
        if product.id in self.state.marked:
            return False
        if product.quantity <= 0:
            raise RecountStateError(f"Product {product_id} has no stock to recount")
        self.state = Recounting(marked=self.state.marked | {product.id})
        LOG.debug(f"Marked {product_id} for zeroing ({len(self.state.marked)} marked)")
        return True

    def finish(self, confirmed: bool) -> RecountResult:
        """Leave recount mode, zeroing marked products if ``confirmed``.

        An empty mark set never needs confirmation and changes nothing.
        """
        if not isinstance(self.state, Recounting):
            raise RecountStateError("No recount in progress")
        marked = self.state.marked
        zeroed = 0
        applied = False
        if marked and confirmed:
            zeroed = self.store.zero_out(marked)
            applied = True
        elif marked:
            LOG.info(f"Recount finished without confirmation; {len(marked)} mark(s) discarded")
        self.state = Normal()
        LOG.info(f"Recount finished: marked={len(marked)} zeroed={zeroed}")
        return RecountResult(marked=len(marked), zeroed=zeroed, applied=applied)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.name,
            "marked": sorted(self.marked),
            "items": [product_payload(p) for p in self.recountable()] if self.active else [],
        }
