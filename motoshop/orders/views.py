"""
Routes des commandes.
- Client: historique, détail et statut de paiement (poll après retour de Stripe).
- Back-office (/api/v1/admin/orders): liste, détail, statut opérateur, remboursement.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from motoshop.orders import service as orders_service
from motoshop.orders.models import (
    OrderDetail,
    OrderOut,
    OrderStatusUpdate,
    PaymentStatusOut,
    RefundRequest,
    REFUNDABLE_STATUSES,
)
from motoshop.orders.repository import OrderPersistenceError
from motoshop.payments import reconciler, stripe_client
from motoshop.payments.line_items import to_minor_units
from motoshop.utils.security import (
    get_optional_customer,
    require_customer,
    require_admin,
    session_owns_order,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])
admin_router = APIRouter(prefix="/api/v1/admin/orders", tags=["Admin API"])

NOT_FOUND = "Pedido não encontrado"

def _can_view(request: Request, order: Dict[str, Any], customer: Optional[Dict[str, Any]]) -> bool:
    if customer and order.get("customer_id") and order["customer_id"] == customer.get("id"):
        return True
    return session_owns_order(request, order["id"])

def _load_visible_order(order_id: int, request: Request, customer: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    # Commande d'un autre client: 404, sans révéler son existence
    try:
        order = orders_service.get_order(order_id)
    except orders_service.OrderNotFound:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except OrderPersistenceError:
        raise HTTPException(status_code=500, detail="Erro ao carregar pedido")
    if not _can_view(request, order, customer):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return order

# module motoshop.orders.views
@router.get("/mine", response_model=List[OrderOut])
def my_orders(customer: Dict[str, Any] = Depends(require_customer)):
    try:
        return orders_service.list_customer_orders(customer["id"])
    except OrderPersistenceError:
        raise HTTPException(status_code=500, detail="Erro ao carregar pedidos")

@router.get("/{order_id}", response_model=OrderDetail)
def get_order_detail(order_id: int, request: Request, customer: Optional[Dict[str, Any]] = Depends(get_optional_customer)):
    """Détail d'une commande (lignes figées, total, statut) pour son propriétaire."""
    _load_visible_order(order_id, request, customer)
    try:
        return orders_service.get_order_detail(order_id)
    except (orders_service.OrderNotFound, OrderPersistenceError):
        raise HTTPException(status_code=500, detail="Erro ao carregar pedido")

@router.get("/{order_id}/payment-status", response_model=PaymentStatusOut)
def get_payment_status(order_id: int, request: Request, customer: Optional[Dict[str, Any]] = Depends(get_optional_customer)):
    """
    Statut de paiement d'une commande.
    - Si la commande attend encore Stripe, la session est relue et la transition gardée appliquée.
    """
    _load_visible_order(order_id, request, customer)
    try:
        return reconciler.refresh_payment_status(order_id)
    except orders_service.OrderNotFound:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except OrderPersistenceError:
        raise HTTPException(status_code=500, detail="Erro ao verificar pagamento")

@admin_router.get("", response_model=List[OrderOut])
def admin_list_orders(limit: int = 100, admin: Dict[str, Any] = Depends(require_admin)):
    try:
        return orders_service.list_orders(limit=max(1, min(limit, 500)))
    except OrderPersistenceError:
        raise HTTPException(status_code=500, detail="Erro ao carregar pedidos")

@admin_router.get("/{order_id}", response_model=OrderDetail)
def admin_get_order(order_id: int, admin: Dict[str, Any] = Depends(require_admin)):
    try:
        return orders_service.get_order_detail(order_id)
    except orders_service.OrderNotFound:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except OrderPersistenceError:
        raise HTTPException(status_code=500, detail="Erro ao carregar pedido")

@admin_router.patch("/{order_id}/status", response_model=OrderOut)
def admin_update_status(order_id: int, payload: OrderStatusUpdate, admin: Dict[str, Any] = Depends(require_admin)):
    """
    Transition manuelle (confirmed, shipped, delivered, cancelled, refunded).
    - 409 si la transition n'est pas permise depuis le statut courant.
    """
    try:
        updated = orders_service.update_status_by_operator(order_id, payload.status)
    except orders_service.OrderNotFound:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except orders_service.InvalidTransition as e:
        raise HTTPException(status_code=409, detail=f"Transição de status inválida: {e}")
    except OrderPersistenceError:
        raise HTTPException(status_code=500, detail="Erro ao atualizar pedido")
    logger.info("admin.orders order_id=%s status=%s by=%s", order_id, payload.status.value, admin.get("sub") or admin.get("id"))
    return updated

@admin_router.post("/{order_id}/refund")
def admin_refund_order(order_id: int, payload: RefundRequest, admin: Dict[str, Any] = Depends(require_admin)):
    """
    Rembourse une commande payée via Stripe (total ou partiel).
    - Le passage à 'refunded' est appliqué à réception de charge.refunded (remboursement total).
    """
    try:
        order = orders_service.get_order(order_id)
    except orders_service.OrderNotFound:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    except OrderPersistenceError:
        raise HTTPException(status_code=500, detail="Erro ao carregar pedido")
    payment_intent_id = order.get("stripe_payment_intent_id")
    if order.get("status") not in REFUNDABLE_STATUSES or not payment_intent_id:
        raise HTTPException(status_code=409, detail="Pedido não pode ser reembolsado")
    if not stripe_client.is_configured():
        raise HTTPException(status_code=500, detail="Stripe não configurado")
    amount = to_minor_units(payload.amount) if payload.amount is not None else None
    try:
        refund = stripe_client.create_refund(payment_intent_id, amount)
    except stripe_client.PaymentProviderError:
        raise HTTPException(status_code=502, detail="Não foi possível processar o reembolso")
    logger.info("admin.orders refund order_id=%s refund=%s amount=%s", order_id, refund.id, amount)
    return {"order_id": order_id, "refund_id": refund.id, "status": refund.status}
