from unittest.mock import MagicMock

class _Resp:
    def __init__(self, data=None):
        self.data = data

def _client_returning(rows):
    sb = MagicMock()
    query = sb.table.return_value.select.return_value
    query.order.return_value.execute.return_value = _Resp(rows)
    query.eq.return_value.limit.return_value.execute.return_value = _Resp(rows[:1])
    return sb

PRODUCT = {
    "id": 1,
    "name": "Capacete",
    "price": 25.0,
    "in_stock": True,
    "product_variations": [{"id": 10, "product_id": 1, "label": "M", "price": 27.5, "in_stock": False}],
}

def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["stripe_configured"] is True
    assert body["rate_limit"]["enabled"] is False

def test_health_supabase_reports_tables(client, monkeypatch):
    monkeypatch.setattr("motoshop.health.service.SUPABASE_URL", "")
    body = client.get("/health/supabase").json()
    assert body["connect_ok"] is True
    assert set(body["tables"]) == {"products", "product_variations", "customers", "orders", "order_items", "site_settings"}

def test_products_list_and_detail(client, monkeypatch):
    sb = _client_returning([PRODUCT])
    monkeypatch.setattr("motoshop.infra.supabase_client.get_supabase", lambda: sb)
    res = client.get("/api/v1/products")
    assert res.status_code == 200
    assert res.json()[0]["variations"][0]["in_stock"] is False
    detail = client.get("/api/v1/products/1").json()
    assert detail["name"] == "Capacete"

def test_product_not_found(client, monkeypatch):
    monkeypatch.setattr("motoshop.infra.supabase_client.get_supabase", lambda: _client_returning([]))
    res = client.get("/api/v1/products/99")
    assert res.status_code == 404
    assert res.json()["detail"] == "Produto não encontrado"
