"""
Accès aux données 'customers' (service-role: écritures faites par le checkout serveur).
"""
from typing import Dict, Any, Optional
import logging
import motoshop.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = "id, name, phone, email, nickname, delivery_address, is_registered"

def _first(res) -> Optional[Dict[str, Any]]:
    rows = res.data or []
    return rows[0] if rows else None

def get_customer(customer_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("customers")
            .select(CUSTOMER_FIELDS)
            .eq("id", customer_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("customers.repository.get_customer failed customer_id=%s", customer_id)
        return None

def get_customer_by_phone(phone: str) -> Optional[Dict[str, Any]]:
    res = (
        supabase_client.get_service_supabase()
        .table("customers")
        .select(CUSTOMER_FIELDS)
        .eq("phone", phone)
        .limit(1)
        .execute()
    )
    return _first(res)

def get_customer_by_email(email: str) -> Optional[Dict[str, Any]]:
    res = (
        supabase_client.get_service_supabase()
        .table("customers")
        .select(CUSTOMER_FIELDS)
        .eq("email", email)
        .limit(1)
        .execute()
    )
    return _first(res)

def create_customer(data: Dict[str, Any]) -> Dict[str, Any]:
    res = supabase_client.get_service_supabase().table("customers").insert(data).execute()
    row = _first(res)
    if not row:
        raise RuntimeError("Insertion customers sans ligne retournée")
    return row

def update_customer(customer_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    res = (
        supabase_client.get_service_supabase()
        .table("customers")
        .update(data)
        .eq("id", customer_id)
        .execute()
    )
    return _first(res)
