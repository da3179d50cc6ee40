import logging

from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import JSONResponse

from motoshop.config import STRIPE_PUBLIC_KEY, STRIPE_CURRENCY
from motoshop.orders.repository import OrderPersistenceError
from motoshop.payments import stripe_client
from motoshop.payments import webhook as payments_webhook

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module motoshop.payments.views
@router.get("/config")
def payments_config():
    """
    Configuration publique du paiement pour le front (clé publiable, devise, moyens actifs).
    - 500 si Stripe n'est pas configuré côté serveur.
    """
    if not stripe_client.is_configured():
        raise HTTPException(status_code=500, detail="Stripe não configurado")
    return {
        "publishable_key": STRIPE_PUBLIC_KEY,
        "currency": STRIPE_CURRENCY,
        "payment_methods": ["whatsapp", "card", "pix"],
    }

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request):
    """
    Webhook Stripe.
    - Signature: validée sur le body brut (Stripe-Signature + STRIPE_WEBHOOK_SECRET), sinon 400 sans effet.
    - Traitement: payments_webhook.handle_event (transitions gardées, idempotentes).
    - Erreur de base: 500 pour que Stripe relivre l'événement.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    try:
        event = stripe_client.construct_event(payload, sig_header)
    except stripe_client.WebhookSignatureError as e:
        logger.warning("payments.webhook signature invalide: %s", e)
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook signature")
    except stripe_client.PaymentProviderError:
        logger.error("payments.webhook STRIPE_WEBHOOK_SECRET absent")
        raise HTTPException(status_code=500, detail="Webhook não configurado")

    try:
        result = payments_webhook.handle_event(event)
    except OrderPersistenceError:
        logger.exception("payments.webhook persistance échouée event=%s", event.get("id"))
        raise HTTPException(status_code=500, detail="Erro ao processar evento")
    return JSONResponse(result)
