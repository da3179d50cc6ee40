"""
Registre central des routers (API v1, admin, health).
- API v1: catalogue, checkout, commandes, paiements
- Admin: back-office commandes
- Health: health_router
"""
from fastapi import FastAPI
from motoshop.catalog import views as catalog_views
from motoshop.checkout import views as checkout_views
from motoshop.orders import views as orders_views
from motoshop.payments import views as payments_views
from motoshop.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(catalog_views.router)
    app.include_router(checkout_views.router)
    app.include_router(orders_views.router)
    app.include_router(payments_views.router)
    # Admin
    app.include_router(orders_views.admin_router)
    # Health & monitoring
    app.include_router(health_router)
