"""
Dispatcher de checkout côté client.
- Valide localement (mêmes schémas que l'API) avant tout appel réseau.
- Une seule soumission en cours: un double clic est rejeté (CheckoutInProgress).
- WhatsApp: ouvre le lien wa.me puis vide le panier.
- Carte/PIX: redirige vers la page Stripe hébergée (même onglet); le panier reste intact jusqu'à confirmation du paiement.
"""
import logging
import threading
import webbrowser
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from motoshop.cart.store import CartStore, log_notifier
from motoshop.checkout.schemas import CheckoutRequest, require_email
from motoshop.client.api import ApiError, StorefrontClient
from motoshop.orders.models import PaymentMethod

logger = logging.getLogger(__name__)

Opener = Callable[[str], Any]

FIELD_MESSAGES = {
    "name": "Nome deve ter pelo menos 2 caracteres",
    "phone": "Telefone deve ter pelo menos 10 dígitos",
    "email": "Email inválido",
}

class CheckoutValidationError(Exception):
    pass

class CheckoutInProgress(Exception):
    pass

class CheckoutFailed(Exception):
    pass

@dataclass
class CheckoutResult:
    order_id: int
    method: PaymentMethod
    redirect_url: str
    whatsapp_message: Optional[str] = None
    session_id: Optional[str] = None

def _validation_message(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = err.get("loc") or ()
    if len(loc) >= 2 and loc[0] == "customer" and loc[1] in FIELD_MESSAGES:
        return FIELD_MESSAGES[loc[1]]
    ctx_error = (err.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return "Dados do pedido inválidos"

class CheckoutDispatcher:
    def __init__(
        self,
        api: StorefrontClient,
        cart: CartStore,
        opener: Opener = webbrowser.open_new_tab,
        redirect: Opener = webbrowser.open,
        notify: Optional[Callable[[str, str], None]] = None,
    ):
        self._api = api
        self._cart = cart
        self._opener = opener
        self._redirect = redirect
        self._notify = notify or log_notifier
        self._lock = threading.Lock()

    def build_request(
        self,
        method: PaymentMethod,
        guest: Optional[Dict[str, Any]] = None,
        customer: Optional[Dict[str, Any]] = None,
        delivery_address: Optional[str] = None,
    ) -> CheckoutRequest:
        """
        Construit et valide le corps du checkout à partir du panier.
        - customer: profil du client authentifié (déjà validé), sinon guest (formulaire).
        """
        if self._cart.is_empty():
            raise CheckoutValidationError("Seu carrinho está vazio")
        if customer:
            try:
                require_email(method, customer.get("email"))
            except ValueError as e:
                raise CheckoutValidationError(str(e))
        elif not guest:
            raise CheckoutValidationError("Informe nome e telefone para finalizar o pedido")

        body = {
            # Le serveur identifie le client authentifié par la session
            "customer": None if customer else guest,
            "delivery_address": delivery_address,
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.display_name,
                    "product_price": item.unit_price,
                    "quantity": item.quantity,
                }
                for item in self._cart.items
            ],
            "total": float(self._cart.total),
            "payment_method": method.value,
        }
        try:
            return CheckoutRequest.model_validate(body)
        except ValidationError as e:
            raise CheckoutValidationError(_validation_message(e)) from e

    def submit(
        self,
        method: str,
        guest: Optional[Dict[str, Any]] = None,
        customer: Optional[Dict[str, Any]] = None,
        delivery_address: Optional[str] = None,
    ) -> CheckoutResult:
        if not self._lock.acquire(blocking=False):
            raise CheckoutInProgress("Pedido já está sendo enviado")
        try:
            payment_method = PaymentMethod(method)
            req = self.build_request(payment_method, guest, customer, delivery_address)
            payload = req.model_dump(mode="json")
            try:
                if payment_method.uses_provider:
                    return self._submit_payment(payment_method, payload)
                return self._submit_whatsapp(payload)
            except ApiError as e:
                logger.warning("client.checkout method=%s failed: %s", payment_method.value, e)
                self._notify("Erro ao finalizar pedido", e.detail)
                raise CheckoutFailed(e.detail) from e
        finally:
            self._lock.release()

    def _submit_whatsapp(self, payload: Dict[str, Any]) -> CheckoutResult:
        res = self._api.create_whatsapp_checkout(payload)
        self._opener(res["whatsapp_url"])
        self._cart.clear()
        self._notify("Pedido enviado com sucesso!", "Continue a conversa pelo WhatsApp")
        return CheckoutResult(
            order_id=res["order_id"],
            method=PaymentMethod.WHATSAPP,
            redirect_url=res["whatsapp_url"],
            whatsapp_message=res.get("whatsapp_message"),
        )

    def _submit_payment(self, method: PaymentMethod, payload: Dict[str, Any]) -> CheckoutResult:
        res = self._api.create_payment_session(payload)
        # Page Stripe dans le même onglet: le retour se fait via success_url
        self._redirect(res["checkout_url"])
        return CheckoutResult(
            order_id=res["order_id"],
            method=method,
            redirect_url=res["checkout_url"],
            session_id=res.get("session_id"),
        )
