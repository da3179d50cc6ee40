"""
Sérialisation/désérialisation des métadonnées Stripe (order_id + instantané client).
"""
from typing import Any, Dict, Optional

# Limite Stripe: 500 caractères par valeur
_MAX_VALUE_LEN = 500

def make_metadata(order_id: int, contact: Dict[str, Any]) -> Dict[str, str]:
    meta = {
        "order_id": str(order_id),
        "customer_name": contact.get("name") or "",
        "customer_phone": contact.get("phone") or "",
        "delivery_address": contact.get("delivery_address") or "",
    }
    return {k: v[:_MAX_VALUE_LEN] for k, v in meta.items()}

def extract_order_id(obj: Optional[Dict[str, Any]]) -> Optional[int]:
    """
    Lit metadata.order_id d'un objet Stripe (session, payment_intent).
    - Tolérant: retourne None si absent ou non numérique.
    """
    meta = (obj or {}).get("metadata") or {}
    raw = meta.get("order_id") or meta.get("orderId")
    try:
        order_id = int(str(raw))
    except (TypeError, ValueError):
        return None
    return order_id if order_id > 0 else None
