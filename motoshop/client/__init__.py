"""
Module 'client': panier local, checkout et suivi de paiement côté acheteur.
"""
from pathlib import Path
from typing import Callable, Optional

from motoshop.cart.storage import FileCartStorage
from motoshop.cart.store import CartStore, log_notifier
from motoshop.config import CART_STORAGE_PATH

from .api import ApiError, StorefrontClient
from .checkout import (
    CheckoutDispatcher,
    CheckoutFailed,
    CheckoutInProgress,
    CheckoutResult,
    CheckoutValidationError,
)
from .reconciler import PaymentStatusPoller, PollOutcome, ReconcileResult

def load_cart(path: Optional[Path] = None, notify: Callable[[str, str], None] = log_notifier) -> CartStore:
    """Panier rechargé au démarrage depuis CART_STORAGE_PATH (ou le chemin fourni)."""
    return CartStore(FileCartStorage(path or CART_STORAGE_PATH), notify=notify)

__all__ = [
    "ApiError",
    "StorefrontClient",
    "CheckoutDispatcher",
    "CheckoutFailed",
    "CheckoutInProgress",
    "CheckoutResult",
    "CheckoutValidationError",
    "PaymentStatusPoller",
    "PollOutcome",
    "ReconcileResult",
    "load_cart",
]
