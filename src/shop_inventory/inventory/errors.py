from __future__ import annotations

from typing import Any, Dict, Optional


class InventoryError(Exception):
    """Base class for recoverable inventory failures."""


class ValidationError(InventoryError):
    """Form input rejected; nothing was saved."""


class NotFoundError(InventoryError):
    """Lookup by id or barcode missed.

    For barcode misses in add mode ``prefill`` carries editor defaults for
    creating the missing product.
    """

    def __init__(self, message: str, *, key: Optional[str] = None, prefill: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.key = key
        self.prefill = prefill


class ImportFormatError(InventoryError):
    """Import payload is malformed; the store was left untouched."""


class CameraAccessError(InventoryError):
    """Camera permission denied or unsupported."""


class RecountStateError(InventoryError):
    """Recount operation invoked in the wrong workflow state."""
