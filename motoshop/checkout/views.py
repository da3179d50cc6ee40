import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from motoshop.checkout import service as checkout_service
from motoshop.checkout.schemas import CheckoutRequest
from motoshop.utils.rate_limit import optional_rate_limit
from motoshop.utils.security import get_optional_customer, remember_order

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

# module motoshop.checkout.views
@router.post("/whatsapp", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def checkout_whatsapp(
    payload: CheckoutRequest,
    request: Request,
    customer: Optional[Dict[str, Any]] = Depends(get_optional_customer),
):
    """
    Crée une commande WhatsApp ('pending') et renvoie le message + lien wa.me.
    - Invité: payload.customer obligatoire (nom >= 2, téléphone >= 10).
    - La commande est mémorisée dans la session pour l'accès invité au détail.
    """
    try:
        result = checkout_service.process_whatsapp_checkout(payload, customer)
    except checkout_service.CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    remember_order(request, result["order_id"])
    return result

@router.post("/payment-session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def checkout_payment_session(
    payload: CheckoutRequest,
    request: Request,
    customer: Optional[Dict[str, Any]] = Depends(get_optional_customer),
):
    """
    Crée une commande 'awaiting_payment' et une session Stripe Checkout (carte ou PIX).
    - Réponse: {order_id, session_id, checkout_url}; le client redirige vers checkout_url.
    - Erreurs: 400 (méthode/email), 500 (Stripe non configuré), 502 (Stripe indisponible).
    """
    try:
        result = checkout_service.process_stripe_checkout(payload, customer)
    except checkout_service.CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    remember_order(request, result["order_id"])
    return result
