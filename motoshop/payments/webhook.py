"""
Application des événements Stripe (webhook) aux commandes.
- Chaque événement se traduit en transition gardée: une relivraison est un no-op.
- Commande inconnue: journalisée puis acquittée (Stripe ne doit pas relivrer indéfiniment).
- Erreur de base (OrderPersistenceError): remonte, la vue répond 500 et Stripe relivre.
"""
import logging
from typing import Any, Dict, Optional

from motoshop.orders import repository as orders_repo
from motoshop.orders import service as orders_service
from motoshop.payments.metadata import extract_order_id

logger = logging.getLogger(__name__)

SESSION_PAID_EVENTS = {"checkout.session.completed", "checkout.session.async_payment_succeeded"}
SESSION_FAILED_EVENTS = {"checkout.session.expired", "checkout.session.async_payment_failed"}

def _intent_id(value: Any) -> Optional[str]:
    # payment_intent peut être un id ou un objet expandé
    if isinstance(value, dict):
        return value.get("id")
    return value or None

def _resolve_order(obj: Dict[str, Any], payment_intent_id: Optional[str]) -> Optional[Dict[str, Any]]:
    order_id = extract_order_id(obj)
    if order_id:
        order = orders_repo.get_order(order_id)
        if order:
            return order
    if payment_intent_id:
        return orders_repo.get_order_by_payment_intent(payment_intent_id)
    return None

def _result(status: str, order_id: Optional[int] = None, applied: bool = False) -> Dict[str, Any]:
    return {"status": status, "order_id": order_id, "applied": applied}

def handle_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Route un événement déjà vérifié vers la transition correspondante.
    Retour: {"status": "ok"|"ignored", "order_id", "applied"}
    """
    event_type = event.get("type") or ""
    obj = (event.get("data") or {}).get("object") or {}
    logger.info("payments.webhook event=%s id=%s", event_type, event.get("id"))

    if event_type in SESSION_PAID_EVENTS or event_type in SESSION_FAILED_EVENTS:
        payment_intent_id = _intent_id(obj.get("payment_intent"))
        order = _resolve_order(obj, payment_intent_id)
        if not order:
            logger.warning("payments.webhook commande introuvable event=%s session=%s", event_type, obj.get("id"))
            return _result("ignored")
        order_id = order["id"]
        if event_type in SESSION_PAID_EVENTS:
            # PIX: 'completed' arrive avec payment_status='unpaid', le paiement suit en async_payment_succeeded
            if obj.get("payment_status") != "paid":
                logger.info("payments.webhook order_id=%s session complétée, paiement en attente", order_id)
                return _result("ok", order_id)
            updated = orders_service.mark_paid(order_id, payment_intent_id)
        else:
            updated = orders_service.mark_payment_failed(order_id)
        return _result("ok", order_id, applied=updated is not None)

    if event_type == "payment_intent.payment_failed":
        order = _resolve_order(obj, obj.get("id"))
        if not order:
            logger.warning("payments.webhook commande introuvable event=%s pi=%s", event_type, obj.get("id"))
            return _result("ignored")
        updated = orders_service.mark_payment_failed(order["id"])
        return _result("ok", order["id"], applied=updated is not None)

    if event_type == "charge.refunded":
        payment_intent_id = _intent_id(obj.get("payment_intent"))
        order = _resolve_order(obj, payment_intent_id)
        if not order:
            logger.warning("payments.webhook commande introuvable event=%s pi=%s", event_type, payment_intent_id)
            return _result("ignored")
        if not obj.get("refunded"):
            logger.info("payments.webhook order_id=%s remboursement partiel, statut conservé", order["id"])
            return _result("ok", order["id"])
        updated = orders_service.mark_refunded(order["id"])
        return _result("ok", order["id"], applied=updated is not None)

    return _result("ignored")
