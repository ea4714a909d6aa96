"""Barcode scan dispatch and the camera capability boundary.

Decoding happens outside this package: a ``BarcodeScanner`` hands over an
already-decoded string and ``dispatch`` decides what it means.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from ..domain.models import Product
from ..logging import get_logger
from .constants import SIMULATED_BARCODE
from .errors import CameraAccessError


LOG = get_logger("inventory-scan")


class ScanMode(str, enum.Enum):
    ADD = "add"
    SEARCH = "search"

    @classmethod
    def parse(cls, value: Any) -> "ScanMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown scan mode: {value!r}") from None


class ScanActionKind(str, enum.Enum):
    SET_SEARCH = "set-search"
    CLEAR_SEARCH = "clear-search"
    INCREMENT = "increment"
    OFFER_CREATE = "offer-create"


@dataclass(frozen=True)
class ScanAction:
    kind: ScanActionKind
    barcode: str
    product_id: Optional[str] = None
    quantity: Optional[int] = None
    prefill: Dict[str, Any] = field(default_factory=dict)

    @property
    def not_found(self) -> bool:
        return self.kind in (ScanActionKind.CLEAR_SEARCH, ScanActionKind.OFFER_CREATE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.kind.value,
            "barcode": self.barcode,
            "productId": self.product_id,
            "quantity": self.quantity,
            "prefill": dict(self.prefill) or None,
            "notFound": self.not_found,
        }


def find_by_barcode(products: Sequence[Product], barcode: str) -> Optional[Product]:
    for p in products:
        if p.barcode is not None and p.barcode == barcode:
            return p
    return None


def dispatch(products: Sequence[Product], mode: ScanMode, barcode: str) -> ScanAction:
    """Decide the action for a decoded ``barcode`` (exact match lookup)."""
    found = find_by_barcode(products, barcode)
    if mode is ScanMode.SEARCH:
        if found is not None:
            return ScanAction(ScanActionKind.SET_SEARCH, barcode, product_id=found.id)
        return ScanAction(ScanActionKind.CLEAR_SEARCH, barcode)
    if found is not None:
        return ScanAction(ScanActionKind.INCREMENT, barcode, product_id=found.id, quantity=found.quantity + 1)
    return ScanAction(ScanActionKind.OFFER_CREATE, barcode, prefill={"barcode": barcode})


class BarcodeScanner:
    """Camera capability: acquire, read one decoded code, release."""

    def open(self) -> None:
        raise NotImplementedError

    def read(self) -> str:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "BarcodeScanner":
        self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class SimulatedScanner(BarcodeScanner):
    """Stand-in camera returning a fixed code.

    ``available=False`` behaves like a denied or missing camera.
    """

    def __init__(self, code: str = SIMULATED_BARCODE, *, available: bool = True) -> None:
        self.code = code
        self.available = available
        self.is_open = False

    def open(self) -> None:
        if not self.available:
            raise CameraAccessError("Camera is not available or permission was denied")
        self.is_open = True
        LOG.debug("Simulated camera opened")

    def read(self) -> str:
        if not self.is_open:
            raise CameraAccessError("Camera stream is not open")
        return self.code

    def close(self) -> None:
        self.is_open = False
