"""
Modèle métier des commandes: statuts, moyens de paiement, règles de transition
et représentations renvoyées par l'API.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from pydantic import BaseModel, Field

class OrderStatus(str, Enum):
    PENDING = "pending"                      # WhatsApp, confirmation manuelle
    AWAITING_PAYMENT = "awaiting_payment"    # session Stripe créée
    PAID = "paid"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    PAYMENT_FAILED = "payment_failed"
    REFUNDED = "refunded"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    AWAITING_PAYMENT = "awaiting_payment"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

class PaymentMethod(str, Enum):
    WHATSAPP = "whatsapp"
    CARD = "card"
    PIX = "pix"

    @property
    def uses_provider(self) -> bool:
        return self in (PaymentMethod.CARD, PaymentMethod.PIX)

def _values(*statuses: OrderStatus) -> FrozenSet[str]:
    return frozenset(s.value for s in statuses)

# Statuts depuis lesquels la vérité Stripe peut marquer la commande payée.
# payment_failed en fait partie: un refus de carte n'empêche pas un second essai réussi dans la même session.
PAYABLE_STATUSES = _values(OrderStatus.PENDING, OrderStatus.AWAITING_PAYMENT, OrderStatus.PAYMENT_FAILED)
FAILABLE_STATUSES = _values(OrderStatus.PENDING, OrderStatus.AWAITING_PAYMENT)
REFUNDABLE_STATUSES = _values(OrderStatus.PAID, OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.DELIVERED)

# Statuts où le poll client s'arrête
POLL_WAITING_PAYMENT_STATUSES = frozenset({PaymentStatus.PENDING.value, PaymentStatus.AWAITING_PAYMENT.value})

# Transitions manuelles autorisées au back-office (paid/payment_failed restent réservés à Stripe)
OPERATOR_TRANSITIONS: Dict[OrderStatus, FrozenSet[str]] = {
    OrderStatus.PENDING: _values(OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    OrderStatus.AWAITING_PAYMENT: _values(OrderStatus.CANCELLED),
    OrderStatus.PAYMENT_FAILED: _values(OrderStatus.CANCELLED),
    OrderStatus.PAID: _values(OrderStatus.CONFIRMED, OrderStatus.CANCELLED, OrderStatus.REFUNDED),
    OrderStatus.CONFIRMED: _values(OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED),
    OrderStatus.SHIPPED: _values(OrderStatus.DELIVERED),
    OrderStatus.DELIVERED: _values(OrderStatus.REFUNDED),
}

def can_operator_move(current: str, target: str) -> bool:
    try:
        allowed = OPERATOR_TRANSITIONS.get(OrderStatus(current), frozenset())
    except ValueError:
        return False
    return target in allowed

class OrderItemOut(BaseModel):
    id: Optional[int] = None
    product_id: Optional[int] = None
    product_name: str
    product_price: float
    quantity: int

class OrderOut(BaseModel):
    id: int
    customer_id: Optional[str] = None
    status: str
    total: float
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

class OrderDetail(OrderOut):
    items: List[OrderItemOut] = Field(default_factory=list)

class PaymentStatusOut(BaseModel):
    order_id: int
    status: str
    payment_status: Optional[str] = None
    stripe_status: Optional[str] = None

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

class RefundRequest(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0)
