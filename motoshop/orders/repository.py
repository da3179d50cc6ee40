"""
Accès aux données 'orders' / 'order_items' (client service-role).
- Les erreurs de base remontent en OrderPersistenceError: le webhook doit répondre non-2xx
  pour que Stripe relivre l'événement.
- transition_order est la mise à jour gardée (UPDATE ... WHERE id=? AND status IN (...)):
  seul le premier écrivain a un effet, le second obtient None.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import motoshop.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

class OrderPersistenceError(Exception):
    pass

def _table(name: str):
    return supabase_client.get_service_supabase().table(name)

def insert_order(row: Dict[str, Any]) -> Dict[str, Any]:
    try:
        res = _table("orders").insert(row).execute()
    except Exception as e:
        logger.exception("orders.repository.insert_order failed")
        raise OrderPersistenceError("insert_order") from e
    rows = res.data or []
    if not rows:
        raise OrderPersistenceError("insert_order: aucune ligne retournée")
    return rows[0]

def insert_order_items(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Insertion en un seul lot (une requête) des lignes d'une commande."""
    try:
        res = _table("order_items").insert(rows).execute()
    except Exception as e:
        logger.exception("orders.repository.insert_order_items failed order_id=%s", rows[0].get("order_id") if rows else None)
        raise OrderPersistenceError("insert_order_items") from e
    return res.data or []

def delete_order(order_id: int) -> None:
    """Suppression d'une commande et de ses lignes (utilisé pour annuler une création incomplète)."""
    try:
        _table("order_items").delete().eq("order_id", order_id).execute()
        _table("orders").delete().eq("id", order_id).execute()
    except Exception as e:
        logger.exception("orders.repository.delete_order failed order_id=%s", order_id)
        raise OrderPersistenceError("delete_order") from e

def get_order(order_id: int) -> Optional[Dict[str, Any]]:
    try:
        res = _table("orders").select("*").eq("id", order_id).limit(1).execute()
    except Exception as e:
        logger.exception("orders.repository.get_order failed order_id=%s", order_id)
        raise OrderPersistenceError("get_order") from e
    rows = res.data or []
    return rows[0] if rows else None

def get_order_by_payment_intent(payment_intent_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            _table("orders")
            .select("*")
            .eq("stripe_payment_intent_id", payment_intent_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("orders.repository.get_order_by_payment_intent failed pi=%s", payment_intent_id)
        raise OrderPersistenceError("get_order_by_payment_intent") from e
    rows = res.data or []
    return rows[0] if rows else None

def get_order_items(order_id: int) -> List[Dict[str, Any]]:
    try:
        res = _table("order_items").select("*").eq("order_id", order_id).order("id").execute()
    except Exception as e:
        logger.exception("orders.repository.get_order_items failed order_id=%s", order_id)
        raise OrderPersistenceError("get_order_items") from e
    return res.data or []

def list_orders(limit: int = 100) -> List[Dict[str, Any]]:
    try:
        res = _table("orders").select("*").order("created_at", desc=True).limit(limit).execute()
    except Exception as e:
        logger.exception("orders.repository.list_orders failed")
        raise OrderPersistenceError("list_orders") from e
    return res.data or []

def list_customer_orders(customer_id: str, limit: int = 50) -> List[Dict[str, Any]]:
    try:
        res = (
            _table("orders")
            .select("*")
            .eq("customer_id", customer_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception as e:
        logger.exception("orders.repository.list_customer_orders failed customer_id=%s", customer_id)
        raise OrderPersistenceError("list_customer_orders") from e
    return res.data or []

def set_payment_session(order_id: int, session_id: str) -> None:
    try:
        _table("orders").update({"stripe_session_id": session_id}).eq("id", order_id).execute()
    except Exception as e:
        logger.exception("orders.repository.set_payment_session failed order_id=%s", order_id)
        raise OrderPersistenceError("set_payment_session") from e

def transition_order(order_id: int, changes: Dict[str, Any], from_statuses: Iterable[str]) -> Optional[Dict[str, Any]]:
    """
    UPDATE orders SET <changes> WHERE id=<order_id> AND status IN (<from_statuses>).
    Retourne la ligne mise à jour, ou None si la garde n'a rien laissé passer.
    """
    try:
        res = (
            _table("orders")
            .update(changes)
            .eq("id", order_id)
            .in_("status", sorted(from_statuses))
            .execute()
        )
    except Exception as e:
        logger.exception("orders.repository.transition_order failed order_id=%s", order_id)
        raise OrderPersistenceError("transition_order") from e
    rows = res.data or []
    return rows[0] if rows else None
