"""
Conversion panier -> line_items Stripe (pas de Stripe, pas de DB).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Union

from motoshop.config import STRIPE_CURRENCY

Amount = Union[Decimal, float, int, str]

def to_minor_units(amount: Amount) -> int:
    """
    Montant en unités monétaires -> centimes Stripe.
    - Passe par la représentation décimale (str) pour éviter l'erreur binaire des floats.
    - Arrondi au plus proche, demi vers le haut: 45.90 -> 4590, 19.995 -> 2000.
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def to_line_items(items: List[Dict[str, Any]], currency: str = STRIPE_CURRENCY) -> List[Dict[str, Any]]:
    """
    Une ligne Stripe par ligne de panier:
    {"quantity", "price_data": {"currency", "unit_amount" (centimes), "product_data": {"name"}}}
    """
    return [
        {
            "quantity": int(item["quantity"]),
            "price_data": {
                "currency": currency,
                "unit_amount": to_minor_units(item["product_price"]),
                "product_data": {"name": item.get("product_name") or "Produto"},
            },
        }
        for item in items
    ]
