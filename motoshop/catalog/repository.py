"""
Accès aux données 'catalogue' (tables products + product_variations).
- Lecture seule: la gestion du catalogue relève du back-office.
"""
from typing import List, Dict, Any, Optional
import logging
import motoshop.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = "id, name, price, in_stock, product_variations(id, product_id, label, price, in_stock)"

def _normalize(row: Dict[str, Any]) -> Dict[str, Any]:
    product = dict(row)
    product["variations"] = product.pop("product_variations", None) or []
    return product

def list_products() -> List[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_supabase()
            .table("products")
            .select(PRODUCT_FIELDS)
            .order("name")
            .execute()
        )
        return [_normalize(r) for r in (res.data or [])]
    except Exception:
        logger.exception("catalog.repository.list_products failed")
        return []

def get_product(product_id: int) -> Optional[Dict[str, Any]]:
    """Produit avec ses variations, ou None s'il n'existe pas (ou en cas d'erreur)."""
    try:
        res = (
            supabase_client.get_supabase()
            .table("products")
            .select(PRODUCT_FIELDS)
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return _normalize(rows[0]) if rows else None
    except Exception:
        logger.exception("catalog.repository.get_product failed product_id=%s", product_id)
        return None
