from __future__ import annotations

from pathlib import Path

import pytest

from shop_inventory.domain.models import Normal, Product, Recounting
from shop_inventory.inventory import NotFoundError, ProductStore, RecountStateError, SlotStorage
from shop_inventory.inventory.recount import RecountWorkflow


def _workflow(tmp_path: Path) -> RecountWorkflow:
    store = ProductStore(SlotStorage(db_path=str(tmp_path / "inventory.sqlite3")))
    store.replace_all(
        [
            Product(id="a", name="Milk", category="Dairy", quantity=5),
            Product(id="b", name="Bread", category="Bakery", quantity=3),
            Product(id="c", name="Soap", category="Cleaning", quantity=0),
            Product(id="d", name="Tea", category="Beverages", quantity=7),
        ]
    )
    return RecountWorkflow(store)


def _quantities(workflow: RecountWorkflow):
    return {p.id: p.quantity for p in workflow.store.products}


def test_start_enters_recounting_with_no_marks(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    assert isinstance(wf.state, Normal)
    wf.start()
    assert isinstance(wf.state, Recounting)
    assert wf.marked == frozenset()


def test_only_stocked_products_are_recountable(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    wf.start()
    assert [p.id for p in wf.recountable()] == ["a", "b", "d"]


def test_marking_is_idempotent_and_deferred(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    before = _quantities(wf)
    wf.start()
    assert wf.mark("a") is True
    assert wf.mark("a") is False
    assert wf.marked == {"a"}
    assert _quantities(wf) == before


def test_confirmed_finish_zeroes_marked_only(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    before = _quantities(wf)
    wf.start()
    wf.mark("a")
    wf.mark("d")
    result = wf.finish(confirmed=True)

    after = _quantities(wf)
    assert result.applied and result.zeroed == 2 and result.marked == 2
    assert after["a"] == 0 and after["d"] == 0
    assert after["b"] == before["b"] and after["c"] == before["c"]
    assert isinstance(wf.state, Normal)


def test_finish_persists_in_one_batch(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    wf.start()
    wf.mark("b")
    wf.finish(confirmed=True)
    reloaded = ProductStore(SlotStorage(db_path=str(tmp_path / "inventory.sqlite3")))
    assert {p.id: p.quantity for p in reloaded.products}["b"] == 0


def test_empty_mark_set_changes_nothing_but_exits(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    before = _quantities(wf)
    wf.start()
    result = wf.finish(confirmed=False)
    assert not result.applied and result.zeroed == 0
    assert _quantities(wf) == before
    assert not wf.active


def test_unconfirmed_finish_discards_marks(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    before = _quantities(wf)
    wf.start()
    wf.mark("a")
    result = wf.finish(confirmed=False)
    assert result.marked == 1 and not result.applied
    assert _quantities(wf) == before
    assert wf.marked == frozenset()


def test_wrong_state_operations_raise(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    with pytest.raises(RecountStateError):
        wf.mark("a")
    with pytest.raises(RecountStateError):
        wf.finish(confirmed=True)
    wf.start()
    with pytest.raises(RecountStateError):
        wf.start()


def test_marking_unknown_or_empty_product_raises(tmp_path: Path) -> None:
    wf = _workflow(tmp_path)
    wf.start()
    with pytest.raises(NotFoundError):
        wf.mark("zzz")
    with pytest.raises(RecountStateError):
        wf.mark("c")
    assert wf.marked == frozenset()
