from decimal import Decimal

import pytest

from motoshop.cart.store import CartStore
from motoshop.catalog.models import Product, ProductVariation

class MemoryStorage:
    def __init__(self, rows=None, fail=False):
        self.rows = list(rows or [])
        self.saves = 0
        self.fail = fail

    def load(self):
        return list(self.rows)

    def save(self, items):
        self.saves += 1
        if self.fail:
            # même contrat que FileCartStorage: l'échec ne remonte pas
            return
        self.rows = list(items)

@pytest.fixture
def notes():
    return []

@pytest.fixture
def store(notes):
    return CartStore(MemoryStorage(), notify=lambda title, desc: notes.append(title))

def _helmet(**kw):
    return Product(id=1, name="Capacete", price=25.0, **kw)

def test_add_twice_increments_single_line(store):
    p = _helmet()
    assert store.add_item(p) is True
    assert store.add_item(p) is True
    items = store.items
    assert len(items) == 1
    assert items[0].quantity == 2
    assert store.count == 2
    assert store.total == Decimal("50.00")

def test_out_of_stock_is_noop_with_warning(store, notes):
    p = _helmet(in_stock=False)
    assert store.add_item(p) is False
    assert store.is_empty()
    assert notes == ["Produto sem estoque"]

def test_variation_price_and_stock_are_used(store):
    p = Product(
        id=2, name="Luva", price=40.0,
        variations=[
            ProductVariation(id=10, label="M", price=45.9, in_stock=True),
            ProductVariation(id=11, label="G", price=47.0, in_stock=False),
        ],
    )
    assert store.add_item(p, p.variation(10)) is True
    assert store.add_item(p, p.variation(11)) is False
    assert store.add_item(p) is True
    assert store.count == 2
    assert store.total == Decimal("85.90")
    names = sorted(i.display_name for i in store.items)
    assert names == ["Luva", "Luva (M)"]

def test_update_quantity_sets_exact_and_removes_below_one(store):
    p = _helmet()
    store.add_item(p)
    store.update_quantity(1, 5)
    assert store.count == 5
    store.update_quantity(1, 0)
    assert store.is_empty()
    assert store.count == 0

def test_every_mutation_is_persisted():
    storage = MemoryStorage()
    store = CartStore(storage, notify=lambda *_: None)
    store.add_item(_helmet())
    store.update_quantity(1, 3)
    store.remove_item(1)
    store.clear()
    assert storage.saves == 4
    assert storage.rows == []

def test_reload_restores_state_and_skips_invalid_rows():
    rows = [
        {"product_id": 1, "variation_id": None, "name": "Capacete", "unit_price": 25.0, "quantity": 2},
        {"product_id": 2, "name": "Quebrado", "unit_price": 10.0, "quantity": 0},
        "lixo",
    ]
    store = CartStore(MemoryStorage(rows), notify=lambda *_: None)
    assert store.count == 2
    assert store.total == Decimal("50.00")

def test_storage_failure_keeps_memory_state():
    store = CartStore(MemoryStorage(fail=True), notify=lambda *_: None)
    store.add_item(_helmet())
    assert store.count == 1

def test_items_are_copies(store):
    store.add_item(_helmet())
    store.items[0].quantity = 99
    assert store.count == 1
