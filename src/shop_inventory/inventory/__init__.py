"""Inventory core package.

Modules:
- storage: SQLite-backed persistent key/value slots
- store: the authoritative product list (insert / replace / remove)
- query: catalog query pipeline (category, search, low-stock, sort)
- editor: product form validation and commit
- recount: two-phase stock-take workflow
- scan: barcode scan dispatch and the camera capability boundary
- transfer: JSON import/export
- service: single entry point used by the HTTP API and the CLI
"""

from .errors import (
    CameraAccessError,
    ImportFormatError,
    InventoryError,
    NotFoundError,
    RecountStateError,
    ValidationError,
)
from .service import InventoryService
from .storage import SlotStorage
from .store import ProductStore
from .frontend.app import create_app

__all__ = [
    "CameraAccessError",
    "ImportFormatError",
    "InventoryError",
    "InventoryService",
    "NotFoundError",
    "ProductStore",
    "RecountStateError",
    "SlotStorage",
    "ValidationError",
    "create_app",
]
