from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..config import load_db_path, load_storage_key
from ..domain.models import Product, ViewParams
from ..logging import get_logger
from .constants import HIGHLIGHT_SECONDS, SAMPLE_PRODUCTS
from .editor import ProductForm, open_form, save_product
from .errors import CameraAccessError, NotFoundError
from .query import CatalogView, build_view, categories
from .recount import RecountWorkflow
from .scan import BarcodeScanner, ScanAction, ScanActionKind, ScanMode, dispatch
from .storage import SlotStorage
from .store import ProductStore
from .transfer import export_products, parse_import


LOG = get_logger("inventory-service")


@dataclass(frozen=True)
class ImportResult:
    count: int
    applied: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "applied": self.applied}


@dataclass(frozen=True)
class ScanOutcome:
    action: ScanAction
    product: Optional[Product]
    view: ViewParams
    form: Optional[ProductForm] = None

    @property
    def error(self) -> Optional[NotFoundError]:
        """NotFoundError describing a barcode miss, None when the code matched."""
        if not self.action.not_found:
            return None
        prefill = dict(self.action.prefill) or None
        return NotFoundError(f"No product with barcode {self.action.barcode}", key=self.action.barcode, prefill=prefill)


class InventoryService:
    """Single entry point for every inventory operation.

    Holds the product store, the current view parameters, the recount
    workflow and the transient "recently updated" highlight.
    """

    def __init__(
        self,
        store: ProductStore,
        *,
        scanner: Optional[BarcodeScanner] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.scanner = scanner
        self.recount = RecountWorkflow(store)
        self.view = ViewParams()
        self._clock = clock
        self._highlight: Optional[tuple] = None

    @classmethod
    def open(
        cls,
        root_dir: Optional[str] = None,
        *,
        db_path: Optional[str] = None,
        scanner: Optional[BarcodeScanner] = None,
    ) -> "InventoryService":
        """Build a service from configuration (env/.env) rooted at ``root_dir``."""
        config_dir = root_dir or "."
        storage = SlotStorage(root_dir, db_path=db_path or load_db_path(config_dir))
        store = ProductStore(storage, key=load_storage_key(config_dir))
        return cls(store, scanner=scanner)

    # ---------------- catalog view ----------------
    def set_view(self, **changes: Any) -> ViewParams:
        self.view = self.view.with_changes(**changes)
        LOG.debug(f"View parameters now {self.view}")
        return self.view

    def catalog(self, params: Optional[ViewParams] = None) -> CatalogView:
        return build_view(self.store.products, params or self.view)

    def categories(self) -> List[str]:
        return categories(self.store.products)

    @property
    def recently_updated_id(self) -> Optional[str]:
        if self._highlight is None:
            return None
        product_id, expires_at = self._highlight
        if self._clock() >= expires_at:
            self._highlight = None
            return None
        return product_id

    # ---------------- editing ----------------
    def edit_form(self, product_id: Optional[str] = None, prefill: Optional[Mapping[str, Any]] = None) -> ProductForm:
        existing = self.store.get(product_id) if product_id is not None else None
        return open_form(existing, prefill)

    def save_product(self, form: ProductForm, existing_id: Optional[str] = None) -> Product:
        return save_product(self.store, form, existing_id)

    def set_quantity(self, product_id: str, quantity: int) -> Product:
        product = self.store.update(product_id, quantity=max(0, int(quantity)))
        self._highlight = (product_id, self._clock() + HIGHLIGHT_SECONDS)
        return product

    def adjust_quantity(self, product_id: str, delta: int) -> Product:
        current = self.store.get(product_id)
        return self.set_quantity(product_id, current.quantity + int(delta))

    def toggle_favorite(self, product_id: str) -> Product:
        current = self.store.get(product_id)
        return self.store.update(product_id, is_favorite=not current.is_favorite)

    def delete_product(self, product_id: str, *, confirmed: bool) -> bool:
        self.store.get(product_id)
        if not confirmed:
            LOG.info(f"Delete of {product_id} not confirmed; nothing removed")
            return False
        self.store.remove(product_id)
        return True

    # ---------------- scanning ----------------
    def scan(self, mode: ScanMode, barcode: str) -> ScanOutcome:
        action = dispatch(self.store.products, mode, barcode)
        product = self.store.find(action.product_id) if action.product_id else None
        form = None
        if action.kind is ScanActionKind.SET_SEARCH:
            self.set_view(search_text=barcode)
        elif action.kind is ScanActionKind.CLEAR_SEARCH:
            LOG.info(f"No product with barcode {barcode!r}")
            self.set_view(search_text="")
        elif action.kind is ScanActionKind.INCREMENT:
            product = self.set_quantity(action.product_id, action.quantity)
        else:
            LOG.info(f"No product with barcode {barcode!r}; offering creation")
            form = open_form(prefill=action.prefill)
        return ScanOutcome(action=action, product=product, view=self.view, form=form)

    def scan_with(self, mode: ScanMode, scanner: Optional[BarcodeScanner] = None) -> ScanOutcome:
        """Read one code from the camera capability and dispatch it."""
        device = scanner or self.scanner
        if device is None:
            raise CameraAccessError("No barcode scanner configured")
        try:
            with device:
                code = device.read()
        except CameraAccessError as exc:
            LOG.warning(f"Camera unavailable: {exc}")
            raise
        LOG.info(f"Scanned barcode {code!r} in {mode.value} mode")
        return self.scan(mode, code)

    # ---------------- import / export ----------------
    def export_data(self) -> str:
        return export_products(self.store.products)

    def import_data(self, text: str, *, confirmed: bool) -> ImportResult:
        products = parse_import(text)
        if not confirmed:
            LOG.info(f"Import of {len(products)} product(s) not confirmed; store unchanged")
            return ImportResult(count=len(products), applied=False)
        self.store.replace_all(products)
        return ImportResult(count=len(products), applied=True)

    def load_sample(self, *, confirmed: bool) -> bool:
        if not confirmed:
            return False
        self.store.replace_all([Product.from_dict(entry) for entry in SAMPLE_PRODUCTS])
        return True

