from fastapi import Request, HTTPException, Depends
from typing import Optional, Dict, Any, List
import jwt
from motoshop.config import ADMIN_JWT_SECRET
from motoshop.customers import repository as customers_repository

SESSION_CUSTOMER_KEY = "customer_id"
SESSION_ORDERS_KEY = "order_ids"
# Nombre max de commandes mémorisées dans la session (cookie signé, taille limitée)
MAX_SESSION_ORDERS = 20

def get_session_customer_id(request: Request) -> Optional[str]:
    """Identifiant du client authentifié (posé par la couche auth externe), sinon None."""
    session = request.scope.get("session")
    if session is None:
        return None
    return session.get(SESSION_CUSTOMER_KEY) or None

def get_optional_customer(request: Request) -> Optional[Dict[str, Any]]:
    """
    Client authentifié courant, ou None pour un invité.
    - Le client est relu en base: une session pointant vers un client supprimé redevient invitée.
    """
    customer_id = get_session_customer_id(request)
    if not customer_id:
        return None
    customer = customers_repository.get_customer(customer_id)
    if not customer:
        request.session.pop(SESSION_CUSTOMER_KEY, None)
        return None
    return customer

def require_customer(customer: Optional[Dict[str, Any]] = Depends(get_optional_customer)) -> Dict[str, Any]:
    if not customer:
        raise HTTPException(status_code=401, detail="Não autenticado")
    return customer

def remember_order(request: Request, order_id: int) -> None:
    """Mémorise une commande créée depuis ce navigateur (accès invité au détail de la commande)."""
    ids: List[int] = list(request.session.get(SESSION_ORDERS_KEY) or [])
    if order_id not in ids:
        ids.append(order_id)
    request.session[SESSION_ORDERS_KEY] = ids[-MAX_SESSION_ORDERS:]

def session_owns_order(request: Request, order_id: int) -> bool:
    session = request.scope.get("session") or {}
    return order_id in (session.get(SESSION_ORDERS_KEY) or [])

def decode_admin_token(token: str) -> Dict[str, Any]:
    if not ADMIN_JWT_SECRET:
        raise HTTPException(status_code=401, detail="Administration non configurée")
    try:
        return jwt.decode(token, ADMIN_JWT_SECRET, algorithms=["HS256"])
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Sessão expirada, faça login novamente")

def get_current_admin(request: Request) -> Dict[str, Any]:
    auth_header = request.headers.get("Authorization", "")
    token = auth_header[7:].strip() if auth_header.startswith("Bearer ") else ""
    if not token:
        raise HTTPException(status_code=401, detail="Não autenticado")
    return decode_admin_token(token)

def require_admin(user: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Acesso negado")
    return user
