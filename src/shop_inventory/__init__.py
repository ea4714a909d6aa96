"""
Shop Inventory – single-user stock tracking.

This package provides shared utilities (config, logging, paths, domain models)
and the inventory core: product store, catalog query pipeline, product
editor, recount workflow and barcode scan dispatch.
"""

__all__ = [
    "config",
    "logging",
    "paths",
]
