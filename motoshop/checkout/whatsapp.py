"""
Message récapitulatif de commande et lien wa.me.
"""
import re
import urllib.parse
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List

URI_COMPONENT_SAFE = "-_.!~*'()"

def _money(value: Decimal) -> str:
    # Même arrondi que le total de la commande et les montants Stripe
    return str(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

def render_order_message(contact: Dict[str, Any], items: List[Dict[str, Any]], total: Decimal) -> str:
    """
    Récapitulatif lisible par le vendeur (mise en forme WhatsApp: *gras*).
    Email et adresse n'apparaissent que s'ils sont renseignés.
    """
    lines = [
        "🏍️ *Novo Pedido*",
        "",
        f"*Cliente:* {contact['name']}",
        f"*Telefone:* {contact['phone']}",
    ]
    if contact.get("email"):
        lines.append(f"*Email:* {contact['email']}")
    if contact.get("delivery_address"):
        lines.append(f"*Endereço:* {contact['delivery_address']}")
    lines += ["", "*Itens:*"]
    for item in items:
        line_total = Decimal(str(item["product_price"])) * int(item["quantity"])
        lines.append(f"• {item['quantity']}x {item['product_name']} - R$ {_money(line_total)}")
    lines += ["", f"*Total: R$ {_money(total)}*"]
    return "\n".join(lines)

def build_whatsapp_url(number: str, message: str) -> str:
    # Équivalent encodeURIComponent: seuls A-Z a-z 0-9 - _ . ! ~ * ' ( ) restent en clair
    digits = re.sub(r"\D", "", number or "")
    text = urllib.parse.quote(message, safe=URI_COMPONENT_SAFE)
    return f"https://wa.me/{digits}?text={text}"
