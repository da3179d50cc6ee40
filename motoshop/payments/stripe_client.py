"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
- Toute erreur du SDK remonte en PaymentProviderError (message générique côté client).
- La vérification de signature des webhooks lève WebhookSignatureError.
"""
import logging
from typing import Any, Dict, List, Optional

import stripe

from motoshop.config import (
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    PIX_EXPIRES_AFTER_SECONDS,
)

logger = logging.getLogger(__name__)

# Fenêtre de tolérance sur l'horodatage de l'en-tête Stripe-Signature
WEBHOOK_TOLERANCE_SECONDS = 300

class PaymentProviderError(Exception):
    pass

class WebhookSignatureError(Exception):
    pass

def is_configured() -> bool:
    return bool(STRIPE_SECRET_KEY)

# module motoshop.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Lève PaymentProviderError si STRIPE_SECRET_KEY est absente.
    """
    if not STRIPE_SECRET_KEY:
        raise PaymentProviderError("Stripe não configurado")
    stripe.api_key = STRIPE_SECRET_KEY
    return stripe

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    payment_method: str,
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
    customer_email: Optional[str] = None,
):
    """
    Crée une session Stripe Checkout (mode "payment").
    - payment_method: "card" ou "pix"; PIX expire après PIX_EXPIRES_AFTER_SECONDS.
    - metadata est aussi posée sur le PaymentIntent pour relier les événements payment_intent.*.
    Retour: objet session (attributs id, url, payment_status, ...).
    """
    require_stripe()
    params: Dict[str, Any] = {
        "mode": "payment",
        "line_items": line_items,
        "payment_method_types": [payment_method],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        "payment_intent_data": {"metadata": metadata},
    }
    if customer_email:
        params["customer_email"] = customer_email
    if payment_method == "pix":
        params["payment_method_options"] = {"pix": {"expires_after_seconds": PIX_EXPIRES_AFTER_SECONDS}}
    try:
        return stripe.checkout.Session.create(**params)
    except stripe.StripeError as e:
        logger.exception("payments.stripe.create_session failed order_id=%s", metadata.get("order_id"))
        raise PaymentProviderError("create_session") from e

def get_session(session_id: str):
    """Récupère une session Checkout (payment_status, status, payment_intent, metadata)."""
    require_stripe()
    try:
        return stripe.checkout.Session.retrieve(session_id)
    except stripe.StripeError as e:
        logger.exception("payments.stripe.get_session failed session_id=%s", session_id)
        raise PaymentProviderError("get_session") from e

def create_refund(payment_intent_id: str, amount: Optional[int] = None):
    """Rembourse un PaymentIntent, totalement ou partiellement (amount en centimes)."""
    require_stripe()
    params: Dict[str, Any] = {"payment_intent": payment_intent_id}
    if amount:
        params["amount"] = amount
    try:
        return stripe.Refund.create(**params)
    except stripe.StripeError as e:
        logger.exception("payments.stripe.create_refund failed pi=%s", payment_intent_id)
        raise PaymentProviderError("create_refund") from e

def construct_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """
    Valide la signature d'un webhook via Webhook.construct_event et retourne l'événement (dict).
    - Lit le body brut tel que reçu: toute re-sérialisation invaliderait la signature.
    - Lève WebhookSignatureError si l'en-tête manque, si la signature ne correspond pas
      ou si le body n'est pas du JSON.
    """
    if not STRIPE_WEBHOOK_SECRET:
        raise PaymentProviderError("STRIPE_WEBHOOK_SECRET absent")
    if not sig_header:
        raise WebhookSignatureError("Stripe-Signature manquant")
    try:
        event = stripe.Webhook.construct_event(
            payload, sig_header, STRIPE_WEBHOOK_SECRET, tolerance=WEBHOOK_TOLERANCE_SECONDS
        )
    except (stripe.SignatureVerificationError, ValueError) as e:
        raise WebhookSignatureError(str(e)) from e
    return event.to_dict()
