# module motoshop.app
from fastapi import FastAPI

from motoshop.app_setup.lifespan import lifespan
from motoshop.app_setup.middlewares import (
    register_basic_middlewares,
    register_security_middleware,
    register_no_cache_middleware,
)
from motoshop.app_setup.exceptions import register_exception_handlers
from motoshop.app_setup.routers import register_routers

def create_app() -> FastAPI:
    """
    Crée et configure l'instance FastAPI de la boutique.
    Étapes et ordre:
      1) register_basic_middlewares: session, CORS, TrustedHost, ProxyHeaders.
      2) register_security_middleware: en-têtes de sécurité + CSP.
      3) register_no_cache_middleware: pas de cache sur commandes/admin.
      4) register_exception_handlers: JSON {"detail"} pour l'API.
      5) register_routers: catalogue, checkout, commandes, paiements, admin, health.
    """
    app = FastAPI(title="MotoShop API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app

# App globale
app = create_app()
