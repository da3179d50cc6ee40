"""
Client HTTP de la boutique (httpx), utilisé par le dispatcher de checkout et le poll de paiement.
- Les réponses non-2xx et les erreurs réseau remontent en ApiError(status_code, detail).
- status_code=0 signale une erreur de transport (timeout, connexion refusée).
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

class ApiError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail

    @property
    def is_transient(self) -> bool:
        return self.status_code == 0 or self.status_code >= 500

class StorefrontClient:
    def __init__(self, base_url: str, http: Optional[httpx.Client] = None):
        # Un seul client httpx: le cookie de session (commandes invitées) suit les appels
        self._http = http or httpx.Client(base_url=base_url.rstrip("/"))

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            res = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("client.api %s %s transport error: %s", method, path, e)
            raise ApiError(0, "Falha de conexão, verifique sua internet") from e
        if res.status_code >= 400:
            try:
                detail = res.json().get("detail")
            except ValueError:
                detail = None
            if not isinstance(detail, str):
                detail = "Não foi possível concluir a operação"
            raise ApiError(res.status_code, detail)
        return res.json()

    def list_products(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/v1/products")

    def get_product(self, product_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/v1/products/{product_id}")

    def create_whatsapp_checkout(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/v1/checkout/whatsapp", json=payload)

    def create_payment_session(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/v1/checkout/payment-session", json=payload)

    def get_payment_status(self, order_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/v1/orders/{order_id}/payment-status")

    def get_order(self, order_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/v1/orders/{order_id}")
