"""
Module 'payments' (feature-first): point d'entrée public.
Réunit conversion des montants, metadata Stripe, client Stripe, webhook et réconciliation.
"""

from .line_items import to_minor_units, to_line_items
from .metadata import make_metadata, extract_order_id
from .stripe_client import (
    PaymentProviderError,
    WebhookSignatureError,
    is_configured,
    require_stripe,
    create_session,
    get_session,
    create_refund,
    construct_event,
)
from .webhook import handle_event
from .reconciler import refresh_payment_status

__all__ = [
    # montants
    "to_minor_units",
    "to_line_items",
    # metadata
    "make_metadata",
    "extract_order_id",
    # stripe
    "PaymentProviderError",
    "WebhookSignatureError",
    "is_configured",
    "require_stripe",
    "create_session",
    "get_session",
    "create_refund",
    "construct_event",
    # événements
    "handle_event",
    "refresh_payment_status",
]
