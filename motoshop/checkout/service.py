"""Couche service du checkout.
Rôles:
- Résoudre les coordonnées (client de session ou invité) et le client en base.
- WhatsApp: créer la commande 'pending' et le lien wa.me prêt à ouvrir.
- Carte/PIX: créer la commande 'awaiting_payment' puis la session Stripe hébergée.
Les erreurs sont levées en CheckoutError(status_code, detail) avec un message pt-BR.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from motoshop.config import BASE_URL, CHECKOUT_SUCCESS_PATH, CHECKOUT_CANCEL_PATH
from motoshop.checkout import repository as checkout_repository
from motoshop.checkout.schemas import CheckoutRequest, require_email
from motoshop.checkout.whatsapp import render_order_message, build_whatsapp_url
from motoshop.customers import service as customers_service
from motoshop.orders import repository as orders_repository
from motoshop.orders import service as orders_service
from motoshop.orders.models import OrderStatus, PaymentStatus, PaymentMethod
from motoshop.payments import stripe_client
from motoshop.payments.line_items import to_line_items
from motoshop.payments.metadata import make_metadata

logger = logging.getLogger(__name__)

class CheckoutError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail

def _items(req: CheckoutRequest):
    return [item.model_dump() for item in req.items]

def resolve_contact(req: CheckoutRequest, session_customer: Optional[Dict[str, Any]]) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Retourne (coordonnées figées, customer_id).
    - Client authentifié: coordonnées stockées, adresse surchargée par delivery_address si fournie.
    - Invité: coordonnées du formulaire, client retrouvé ou créé (téléphone puis email).
    """
    if session_customer:
        contact = {
            "name": session_customer.get("name") or "",
            "phone": session_customer.get("phone") or "",
            "email": session_customer.get("email") or None,
            "nickname": session_customer.get("nickname") or None,
            "delivery_address": req.delivery_address or session_customer.get("delivery_address"),
        }
        try:
            require_email(req.payment_method, contact["email"])
        except ValueError as e:
            raise CheckoutError(400, str(e))
        return contact, session_customer.get("id")

    if req.customer is None:
        raise CheckoutError(400, "Informe nome e telefone para finalizar o pedido")
    contact = req.customer.model_dump()
    if req.delivery_address:
        contact["delivery_address"] = req.delivery_address
    try:
        customer = customers_service.resolve_checkout_customer(contact)
    except Exception:
        logger.exception("checkout.resolve_contact failed phone=%s", contact.get("phone"))
        raise CheckoutError(500, "Erro ao registrar cliente, tente novamente")
    return contact, customer.get("id")

def process_whatsapp_checkout(req: CheckoutRequest, session_customer: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Commande WhatsApp (confirmation manuelle par le vendeur).
    Retour: {order_id, whatsapp_message, whatsapp_number, whatsapp_url}
    """
    contact, customer_id = resolve_contact(req, session_customer)
    items = _items(req)
    message = render_order_message(contact, items, orders_service.compute_total(items))
    try:
        order = orders_service.create_order(
            contact=contact,
            items=items,
            customer_id=customer_id,
            status=OrderStatus.PENDING,
            payment_method=PaymentMethod.WHATSAPP.value,
            payment_status=PaymentStatus.PENDING,
            whatsapp_message=message,
        )
    except orders_repository.OrderPersistenceError:
        raise CheckoutError(500, "Erro ao criar pedido, tente novamente")
    number = checkout_repository.get_whatsapp_number()
    return {
        "order_id": order["id"],
        "whatsapp_message": message,
        "whatsapp_number": number,
        "whatsapp_url": build_whatsapp_url(number, message),
    }

def _return_urls(order_id: int) -> Tuple[str, str]:
    # str.format laisserait {CHECKOUT_SESSION_ID} sans valeur: remplacement ciblé
    success = BASE_URL + CHECKOUT_SUCCESS_PATH.replace("{order_id}", str(order_id))
    cancel = BASE_URL + CHECKOUT_CANCEL_PATH.replace("{order_id}", str(order_id))
    return success, cancel

def process_stripe_checkout(req: CheckoutRequest, session_customer: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Commande payée en ligne (carte ou PIX) via Stripe Checkout.
    - La commande est créée 'awaiting_payment' avant la session: l'order_id voyage en metadata.
    - Échec de création de session: la commande reste 'awaiting_payment', erreur 502 générique.
    Retour: {order_id, session_id, checkout_url}
    """
    if not req.payment_method.uses_provider:
        raise CheckoutError(400, "Método de pagamento inválido")
    if not stripe_client.is_configured():
        raise CheckoutError(500, "Stripe não configurado")

    contact, customer_id = resolve_contact(req, session_customer)
    items = _items(req)
    try:
        order = orders_service.create_order(
            contact=contact,
            items=items,
            customer_id=customer_id,
            status=OrderStatus.AWAITING_PAYMENT,
            payment_method=req.payment_method.value,
            payment_status=PaymentStatus.AWAITING_PAYMENT,
        )
    except orders_repository.OrderPersistenceError:
        raise CheckoutError(500, "Erro ao criar pedido, tente novamente")

    order_id = order["id"]
    success_url, cancel_url = _return_urls(order_id)
    try:
        session = stripe_client.create_session(
            line_items=to_line_items(items),
            payment_method=req.payment_method.value,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=make_metadata(order_id, contact),
            customer_email=contact.get("email"),
        )
    except stripe_client.PaymentProviderError:
        logger.warning("checkout.stripe order_id=%s reste awaiting_payment (session non créée)", order_id)
        raise CheckoutError(502, "Não foi possível iniciar o pagamento, tente novamente")

    try:
        orders_repository.set_payment_session(order_id, session.id)
    except orders_repository.OrderPersistenceError:
        # L'order_id est dans la metadata: webhook et poll retrouvent la commande sans session_id
        logger.warning("checkout.stripe order_id=%s session_id non enregistré", order_id)
    logger.info("checkout.stripe order_id=%s session=%s method=%s", order_id, session.id, req.payment_method.value)
    return {"order_id": order_id, "session_id": session.id, "checkout_url": session.url}
