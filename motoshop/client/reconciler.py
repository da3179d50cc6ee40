"""
Poll du statut de paiement après le retour de la page Stripe.
- Interroge l'API toutes les POLL_INTERVAL_SECONDS tant que le paiement est en attente.
- S'arrête sur un statut terminal ou après POLL_MAX_WAIT_SECONDS (issue TIMEOUT:
  "pagamento em processamento", la commande reste consultable plus tard).
- Paiement confirmé: charge le détail de la commande et vide le panier une seule fois.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set

from motoshop.cart.store import CartStore
from motoshop.client.api import ApiError, StorefrontClient
from motoshop.config import POLL_INTERVAL_SECONDS, POLL_MAX_WAIT_SECONDS
from motoshop.orders.models import OrderStatus, PaymentStatus, POLL_WAITING_PAYMENT_STATUSES

logger = logging.getLogger(__name__)

FAILED_ORDER_STATUSES = {OrderStatus.PAYMENT_FAILED.value, OrderStatus.CANCELLED.value}

class PollOutcome(str, Enum):
    PAID = "paid"
    FAILED = "failed"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"

@dataclass
class ReconcileResult:
    outcome: PollOutcome
    order_id: int
    payment_status: Optional[str] = None
    order: Optional[Dict[str, Any]] = None
    message: str = ""

class PaymentStatusPoller:
    def __init__(
        self,
        api: StorefrontClient,
        cart: Optional[CartStore] = None,
        interval: float = POLL_INTERVAL_SECONDS,
        max_wait: float = POLL_MAX_WAIT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._api = api
        self._cart = cart
        self._interval = interval
        self._max_wait = max_wait
        self._sleep = sleep
        self._clock = clock
        self._settled: Set[int] = set()

    def _on_paid(self, order_id: int, payment_status: str) -> ReconcileResult:
        try:
            order = self._api.get_order(order_id)
        except ApiError as e:
            logger.warning("client.poll order_id=%s détail indisponible: %s", order_id, e)
            order = None
        if self._cart is not None and order_id not in self._settled:
            self._cart.clear()
        self._settled.add(order_id)
        return ReconcileResult(PollOutcome.PAID, order_id, payment_status, order, "Pagamento confirmado!")

    def reconcile(self, order_id: int) -> ReconcileResult:
        deadline = self._clock() + self._max_wait
        payment_status: Optional[str] = None
        while True:
            try:
                status = self._api.get_payment_status(order_id)
            except ApiError as e:
                if e.status_code == 404:
                    return ReconcileResult(PollOutcome.NOT_FOUND, order_id, message="Pedido não encontrado")
                if not e.is_transient:
                    return ReconcileResult(PollOutcome.FAILED, order_id, message=e.detail)
                logger.info("client.poll order_id=%s erreur transitoire: %s", order_id, e)
            else:
                payment_status = status.get("payment_status")
                if payment_status == PaymentStatus.PAID.value:
                    return self._on_paid(order_id, payment_status)
                if status.get("status") in FAILED_ORDER_STATUSES or payment_status not in POLL_WAITING_PAYMENT_STATUSES:
                    return ReconcileResult(
                        PollOutcome.FAILED,
                        order_id,
                        payment_status,
                        message="Pagamento não aprovado. Tente novamente.",
                    )

            if self._clock() + self._interval > deadline:
                return ReconcileResult(
                    PollOutcome.TIMEOUT,
                    order_id,
                    payment_status,
                    message="Pagamento em processamento. Verifique seus pedidos mais tarde.",
                )
            self._sleep(self._interval)
