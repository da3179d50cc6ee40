# motoshop.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe), sécurité cookies, CORS/hosts
- Fournit les URLs de retour du checkout hébergé et les réglages du poll de paiement
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Supabase: URL et clés (anon/service)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON_KEY = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")
ADMIN_JWT_SECRET = _clean_env(os.getenv("ADMIN_JWT_SECRET") or "")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Stripe: clés publiques/privées, secret webhook, devise
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or os.getenv("STRIPE_PUBLISHABLE_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_CURRENCY = _clean_env(os.getenv("STRIPE_CURRENCY") or "brl").lower()
# Les codes PIX expirent côté Stripe (1 heure)
PIX_EXPIRES_AFTER_SECONDS = _int_env("PIX_EXPIRES_AFTER_SECONDS", 3600)

# Pages de retour du checkout hébergé ({order_id} est remplacé, {CHECKOUT_SESSION_ID} par Stripe)
BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000").rstrip("/")
CHECKOUT_SUCCESS_PATH = os.getenv(
    "CHECKOUT_SUCCESS_PATH", "/pedido/sucesso?session_id={CHECKOUT_SESSION_ID}&order_id={order_id}"
)
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/pedido/cancelado?order_id={order_id}")

# Numéro WhatsApp de secours si site_settings n'en fournit pas
WHATSAPP_NUMBER = _clean_env(os.getenv("WHATSAPP_NUMBER") or "5511999999999")

# Poll du statut de paiement côté client
POLL_INTERVAL_SECONDS = float(_clean_env(os.getenv("POLL_INTERVAL_SECONDS") or "") or 2)
POLL_MAX_WAIT_SECONDS = float(_clean_env(os.getenv("POLL_MAX_WAIT_SECONDS") or "") or 180)

# Panier local du client (équivalent du localStorage navigateur)
CART_STORAGE_PATH = Path(_clean_env(os.getenv("CART_STORAGE_PATH") or "") or (Path.home() / ".motoshop" / "cart.json"))
