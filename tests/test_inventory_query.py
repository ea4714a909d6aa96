from __future__ import annotations

from shop_inventory.domain.models import Product, SortOption, ViewParams
from shop_inventory.inventory.query import EMPTY_STORE, NO_MATCHES, build_view, categories, derive


def _catalog():
    return (
        Product(id="1", name="Milk", category="Dairy", quantity=5, low_stock_threshold=10, is_favorite=True, barcode="111222333"),
        Product(id="2", name="chips", category="Snacks", quantity=25, low_stock_threshold=15, notes="Salt and vinegar"),
        Product(id="3", name="Dish Soap", category="Cleaning", quantity=2, low_stock_threshold=5),
        Product(id="4", name="Apples", category="Produce", quantity=12, low_stock_threshold=5, is_favorite=True),
        Product(id="5", name="Butter", category="Dairy", quantity=0, low_stock_threshold=4, barcode="ABC-77"),
    )


def _ids(products):
    return [p.id for p in products]


def test_search_is_case_insensitive_on_name():
    store = (Product(id="1", name="Milk", category="Dairy", quantity=5, low_stock_threshold=10),)
    result = derive(store, ViewParams(search_text="milk"))
    assert _ids(result) == ["1"]


def test_search_matches_category_and_notes():
    products = _catalog()
    assert _ids(derive(products, ViewParams(search_text="DAIRY"))) == ["5", "1"]
    assert _ids(derive(products, ViewParams(search_text="vinegar"))) == ["2"]


def test_barcode_search_is_case_sensitive_substring():
    products = _catalog()
    assert _ids(derive(products, ViewParams(search_text="222"))) == ["1"]
    assert _ids(derive(products, ViewParams(search_text="ABC"))) == ["5"]
    assert derive(products, ViewParams(search_text="abc-77")) == ()


def test_category_restriction_applies_before_search():
    products = _catalog()
    params = ViewParams(category="Dairy", search_text="mil")
    assert _ids(derive(products, params)) == ["1"]


def test_low_stock_excludes_zero_quantity():
    products = (
        Product(id="a", name="A", category="X", quantity=0, low_stock_threshold=5),
        Product(id="b", name="B", category="X", quantity=0, low_stock_threshold=5),
    )
    assert derive(products, ViewParams(low_stock_only=True)) == ()


def test_low_stock_keeps_strictly_between_zero_and_threshold():
    products = _catalog()
    result = derive(products, ViewParams(low_stock_only=True, sort=SortOption.QUANTITY_ASC))
    assert _ids(result) == ["3", "1"]
    assert all(0 < p.quantity < p.low_stock_threshold for p in result)


def test_sort_by_name_ignores_case():
    products = _catalog()
    assert [p.name for p in derive(products, ViewParams())] == ["Apples", "Butter", "chips", "Dish Soap", "Milk"]


def test_sort_by_category_is_stable_for_ties():
    products = _catalog()
    result = derive(products, ViewParams(sort=SortOption.CATEGORY))
    assert _ids(result) == ["3", "1", "5", "4", "2"]


def test_sort_by_quantity_both_directions():
    products = _catalog()
    assert _ids(derive(products, ViewParams(sort=SortOption.QUANTITY_ASC))) == ["5", "3", "1", "4", "2"]
    assert _ids(derive(products, ViewParams(sort=SortOption.QUANTITY_DESC))) == ["2", "4", "1", "3", "5"]


def test_favorites_first_keeps_relative_order():
    products = _catalog()
    assert _ids(derive(products, ViewParams(sort=SortOption.FAVORITES))) == ["1", "4", "2", "3", "5"]


def test_derive_is_pure_and_repeatable():
    products = _catalog()
    snapshot = list(products)
    params = ViewParams(search_text="a", sort=SortOption.QUANTITY_DESC)
    first = derive(products, params)
    second = derive(products, params)
    assert first == second
    assert list(products) == snapshot
    assert set(first) <= set(products)


def test_empty_states_are_distinguishable():
    assert build_view((), ViewParams()).empty_state == EMPTY_STORE
    view = build_view(_catalog(), ViewParams(search_text="nothing matches this"))
    assert view.empty_state == NO_MATCHES
    assert view.total == 5 and view.count == 0
    assert build_view(_catalog(), ViewParams()).empty_state is None


def test_categories_lists_all_then_first_seen_order():
    assert categories(_catalog()) == ["all", "Dairy", "Snacks", "Cleaning", "Produce"]
    assert categories(()) == ["all"]


def test_sort_by_name_collates_accented_latin():
    products = (
        Product(id="z", name="Zucker", category="Bakery", quantity=3),
        Product(id="a", name="Äpfel", category="Produce", quantity=4),
        Product(id="b", name="Birnen", category="Produce", quantity=6),
    )
    assert [p.name for p in derive(products, ViewParams())] == ["Äpfel", "Birnen", "Zucker"]


def test_sort_by_name_follows_persian_alphabet():
    products = (
        Product(id="1", name="تخم مرغ", category="لبنیات", quantity=3),
        Product(id="2", name="پنیر", category="لبنیات", quantity=5),
    )
    assert _ids(derive(products, ViewParams())) == ["2", "1"]


def test_sort_tolerates_control_characters_in_names():
    products = (
        Product(id="1", name="c", category="X", quantity=1),
        Product(id="2", name="a\x00b", category="X\x00Y", quantity=1),
    )
    assert _ids(derive(products, ViewParams(sort=SortOption.NAME))) == ["2", "1"]
    assert len(derive(products, ViewParams(sort=SortOption.CATEGORY))) == 2
