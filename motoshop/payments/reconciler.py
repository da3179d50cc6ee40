"""
Réconciliation à la demande: alternative au webhook quand il tarde ou n'arrive pas.
Lit la session Stripe d'une commande en attente et applique les mêmes transitions gardées.
"""
import logging
from typing import Any, Dict

from motoshop.orders import service as orders_service
from motoshop.orders.models import POLL_WAITING_PAYMENT_STATUSES
from motoshop.payments import stripe_client

logger = logging.getLogger(__name__)

def refresh_payment_status(order_id: int) -> Dict[str, Any]:
    """
    Retourne {order_id, status, payment_status, stripe_status}.
    - Session Stripe 'paid' -> mark_paid (no-op si le webhook est passé avant).
    - Session 'expired' -> mark_payment_failed.
    - Stripe injoignable: on journalise et on renvoie l'état en base.
    - Lève OrderNotFound si la commande n'existe pas.
    """
    order = orders_service.get_order(order_id)
    stripe_status = None
    session_id = order.get("stripe_session_id")
    if session_id and stripe_client.is_configured():
        try:
            session = stripe_client.get_session(session_id)
        except stripe_client.PaymentProviderError:
            logger.warning("payments.reconcile order_id=%s lecture session impossible", order_id)
        else:
            stripe_status = session.payment_status
            if order.get("payment_status") in POLL_WAITING_PAYMENT_STATUSES:
                if session.payment_status == "paid":
                    intent = session.payment_intent
                    updated = orders_service.mark_paid(order_id, getattr(intent, "id", intent))
                    # None: le webhook a gagné la course, on relit l'état final
                    order = updated or orders_service.get_order(order_id)
                elif session.status == "expired":
                    updated = orders_service.mark_payment_failed(order_id)
                    order = updated or orders_service.get_order(order_id)
    return {
        "order_id": order["id"],
        "status": order.get("status"),
        "payment_status": order.get("payment_status"),
        "stripe_status": stripe_status,
    }
