"""
Réglages du site utiles au checkout (table 'site_settings', lecture publique).
"""
import logging
import motoshop.infra.supabase_client as supabase_client
from motoshop.config import WHATSAPP_NUMBER

logger = logging.getLogger(__name__)

def get_whatsapp_number() -> str:
    """Numéro WhatsApp du vendeur; WHATSAPP_NUMBER si la table n'en fournit pas."""
    try:
        res = (
            supabase_client.get_supabase()
            .table("site_settings")
            .select("whatsapp_number")
            .limit(1)
            .execute()
        )
        rows = res.data or []
        number = (rows[0].get("whatsapp_number") if rows else None) or ""
    except Exception:
        logger.exception("checkout.repository.get_whatsapp_number failed")
        number = ""
    return number.strip() or WHATSAPP_NUMBER
