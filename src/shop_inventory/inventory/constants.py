from __future__ import annotations

from typing import Any, Dict, List, Tuple

# Editor category choices; the first is the blank-form default.
DEFAULT_CATEGORIES: Tuple[str, ...] = (
    "Beverages",
    "Snacks",
    "Dairy",
    "Cleaning",
    "Produce",
    "Bakery",
    "Meat",
    "Miscellaneous",
)

# Select value that switches the editor to free-text category entry.
NEW_CATEGORY_OPTION = "new"

# Category given to imported entries that carry none.
FALLBACK_CATEGORY = "Miscellaneous"

# Code returned by the simulated scanner; matches the sample "Milk".
SIMULATED_BARCODE = "111222333"

# Seconds a quantity change stays highlighted.
HIGHLIGHT_SECONDS = 1.5

EXPORT_FILENAME = "inventory-data.json"

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Milk",
        "category": "Dairy",
        "quantity": 5,
        "lowStockThreshold": 10,
        "isFavorite": True,
        "barcode": SIMULATED_BARCODE,
        "imageUrl": "https://images.unsplash.com/photo-1550583724-b2692b85b210?q=80&w=1287&auto=format&fit=crop",
    },
    {
        "id": "2",
        "name": "Chips",
        "category": "Snacks",
        "quantity": 25,
        "lowStockThreshold": 15,
        "isFavorite": False,
        "notes": "Salt and vinegar flavour",
    },
    {"id": "3", "name": "Dish Soap", "category": "Cleaning", "quantity": 2, "lowStockThreshold": 5, "isFavorite": False},
    {"id": "4", "name": "Apples", "category": "Produce", "quantity": 12, "lowStockThreshold": 5, "isFavorite": True},
    {"id": "5", "name": "Toast Bread", "category": "Bakery", "quantity": 8, "lowStockThreshold": 3, "isFavorite": False},
]
