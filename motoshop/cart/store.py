"""
Panier client: état (produit, variation) -> quantité, persisté après chaque mutation.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional, Protocol, Any
import logging

from pydantic import ValidationError

from motoshop.cart.models import CartItem, CartKey
from motoshop.catalog.models import Product, ProductVariation

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

Notifier = Callable[[str, str], None]

class CartStorage(Protocol):
    def load(self) -> List[Dict[str, Any]]: ...
    def save(self, items: List[Dict[str, Any]]) -> None: ...

def log_notifier(title: str, description: str) -> None:
    logger.info("%s: %s", title, description)

class CartStore:
    """
    Panier persistant côté client.
    - add_item: refuse (no-op + avertissement) un produit/une variation hors stock.
    - update_quantity: fixe la quantité exacte; < 1 équivaut à remove_item.
    - count / total: dérivés des lignes, total calculé sur le prix figé à l'ajout.
    """

    def __init__(self, storage: CartStorage, notify: Notifier = log_notifier):
        self._storage = storage
        self._notify = notify
        self._items: Dict[CartKey, CartItem] = {}
        self._load()

    def _load(self) -> None:
        for raw in self._storage.load():
            try:
                item = CartItem.model_validate(raw)
            except ValidationError:
                logger.warning("cart.store: ligne invalide ignorée %r", raw)
                continue
            self._items[item.key] = item

    def _persist(self) -> None:
        self._storage.save([i.model_dump() for i in self._items.values()])

    @property
    def items(self) -> List[CartItem]:
        return [i.model_copy() for i in self._items.values()]

    @property
    def count(self) -> int:
        return sum(i.quantity for i in self._items.values())

    @property
    def total(self) -> Decimal:
        total = sum(
            (Decimal(str(i.unit_price)) * i.quantity for i in self._items.values()),
            Decimal("0"),
        )
        return total.quantize(CENTS, rounding=ROUND_HALF_UP)

    def is_empty(self) -> bool:
        return not self._items

    def add_item(self, product: Product, variation: Optional[ProductVariation] = None) -> bool:
        in_stock = variation.in_stock if variation is not None else product.in_stock
        if not in_stock:
            self._notify("Produto sem estoque", "Este item não está disponível no momento.")
            return False

        key = (product.id, variation.id if variation is not None else None)
        existing = self._items.get(key)
        if existing:
            existing.quantity += 1
        else:
            self._items[key] = CartItem(
                product_id=product.id,
                variation_id=key[1],
                name=product.name,
                variation_label=variation.label if variation is not None else None,
                unit_price=variation.price if variation is not None else product.price,
                quantity=1,
            )
        self._persist()
        self._notify("Adicionado ao carrinho", f"{self._items[key].display_name} foi adicionado.")
        return True

    def update_quantity(self, product_id: int, new_quantity: int, variation_id: Optional[int] = None) -> None:
        if new_quantity < 1:
            self.remove_item(product_id, variation_id)
            return
        item = self._items.get((product_id, variation_id))
        if item is None:
            return
        item.quantity = new_quantity
        self._persist()

    def remove_item(self, product_id: int, variation_id: Optional[int] = None) -> None:
        if self._items.pop((product_id, variation_id), None) is not None:
            self._persist()

    def clear(self) -> None:
        self._items.clear()
        self._persist()
