"""Couche service des commandes.
Rôles:
- Créer une commande et ses lignes figées (prix, nom, quantité) à partir d'un checkout.
- Appliquer les transitions de paiement dictées par Stripe (webhook ou lecture de session),
  de façon idempotente: la seconde application est un no-op (retour None).
- Transitions manuelles du back-office.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
import logging

from motoshop.orders import repository
from motoshop.orders.models import (
    OrderStatus,
    PaymentStatus,
    PAYABLE_STATUSES,
    FAILABLE_STATUSES,
    REFUNDABLE_STATUSES,
    can_operator_move,
)

logger = logging.getLogger(__name__)

class OrderNotFound(Exception):
    pass

class InvalidTransition(Exception):
    pass

def compute_total(items: List[Dict[str, Any]]) -> Decimal:
    total = sum(
        (Decimal(str(i["product_price"])) * int(i["quantity"]) for i in items),
        Decimal("0"),
    )
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def create_order(
    *,
    contact: Dict[str, Any],
    items: List[Dict[str, Any]],
    customer_id: Optional[str],
    status: OrderStatus,
    payment_method: str,
    payment_status: PaymentStatus,
    whatsapp_message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée la commande puis ses lignes en un lot.
    - items: [{product_id, product_name, product_price, quantity}, ...]
    - Le total est figé ici (somme prix x quantité) et n'est jamais recalculé ensuite.
    - Si l'insertion des lignes échoue, la commande est supprimée puis l'erreur remonte.
    """
    order = repository.insert_order({
        "customer_id": customer_id,
        "status": status.value,
        "total": float(compute_total(items)),
        "customer_name": contact["name"],
        "customer_phone": contact["phone"],
        "customer_email": contact.get("email") or None,
        "delivery_address": contact.get("delivery_address") or None,
        "whatsapp_message": whatsapp_message,
        "payment_method": payment_method,
        "payment_status": payment_status.value,
    })
    order_id = order["id"]
    try:
        rows = repository.insert_order_items([
            {
                "order_id": order_id,
                "product_id": item.get("product_id"),
                "product_name": item["product_name"],
                "product_price": float(item["product_price"]),
                "quantity": int(item["quantity"]),
            }
            for item in items
        ])
    except repository.OrderPersistenceError:
        repository.delete_order(order_id)
        raise
    logger.info("orders.create order_id=%s method=%s items=%s total=%s", order_id, payment_method, len(items), order["total"])
    return {**order, "items": rows}

def get_order(order_id: int) -> Dict[str, Any]:
    order = repository.get_order(order_id)
    if not order:
        raise OrderNotFound(order_id)
    return order

def get_order_detail(order_id: int) -> Dict[str, Any]:
    order = get_order(order_id)
    return {**order, "items": repository.get_order_items(order_id)}

def mark_paid(order_id: int, payment_intent_id: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Passe la commande à 'paid' si elle est encore payable.
    - Retourne la commande mise à jour au premier passage, None ensuite (paid_at n'est pas réécrit).
    """
    changes: Dict[str, Any] = {
        "status": OrderStatus.PAID.value,
        "payment_status": PaymentStatus.PAID.value,
        "paid_at": _now_iso(),
    }
    if payment_intent_id:
        changes["stripe_payment_intent_id"] = payment_intent_id
    updated = repository.transition_order(order_id, changes, PAYABLE_STATUSES)
    if updated:
        logger.info("orders.transition order_id=%s -> paid payment_intent=%s", order_id, payment_intent_id)
    else:
        logger.info("orders.transition order_id=%s paid ignoré (déjà appliqué ou statut non payable)", order_id)
    return updated

def mark_payment_failed(order_id: int) -> Optional[Dict[str, Any]]:
    updated = repository.transition_order(
        order_id,
        {"status": OrderStatus.PAYMENT_FAILED.value, "payment_status": PaymentStatus.FAILED.value},
        FAILABLE_STATUSES,
    )
    if updated:
        logger.info("orders.transition order_id=%s -> payment_failed", order_id)
    return updated

def mark_refunded(order_id: int) -> Optional[Dict[str, Any]]:
    updated = repository.transition_order(
        order_id,
        {"status": OrderStatus.REFUNDED.value, "payment_status": PaymentStatus.REFUNDED.value},
        REFUNDABLE_STATUSES,
    )
    if updated:
        logger.info("orders.transition order_id=%s -> refunded", order_id)
    return updated

def update_status_by_operator(order_id: int, target: OrderStatus) -> Dict[str, Any]:
    order = get_order(order_id)
    current = order.get("status") or ""
    if not can_operator_move(current, target.value):
        raise InvalidTransition(f"{current} -> {target.value}")
    changes: Dict[str, Any] = {"status": target.value}
    if target is OrderStatus.REFUNDED:
        changes["payment_status"] = PaymentStatus.REFUNDED.value
    updated = repository.transition_order(order_id, changes, {current})
    if not updated:
        # Un webhook est passé entre la lecture et l'écriture
        raise InvalidTransition(f"{current} -> {target.value} (statut modifié entre-temps)")
    logger.info("orders.operator order_id=%s %s -> %s", order_id, current, target.value)
    return updated

def list_orders(limit: int = 100) -> List[Dict[str, Any]]:
    return repository.list_orders(limit)

def list_customer_orders(customer_id: str) -> List[Dict[str, Any]]:
    return repository.list_customer_orders(customer_id)
