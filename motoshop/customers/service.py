from typing import Dict, Any
import logging

from motoshop.customers import repository

logger = logging.getLogger(__name__)

def resolve_checkout_customer(contact: Dict[str, Any]) -> Dict[str, Any]:
    """
    Retrouve le client d'un checkout invité: par téléphone, puis par email.
    - Inconnu: crée un client non enregistré (is_registered=False).
    - Connu: met à jour le nom et l'adresse de livraison (l'ancienne adresse est gardée si vide).
    """
    customer = repository.get_customer_by_phone(contact["phone"])
    if not customer and contact.get("email"):
        customer = repository.get_customer_by_email(contact["email"])

    if not customer:
        customer = repository.create_customer({
            "name": contact["name"],
            "phone": contact["phone"],
            "email": contact.get("email") or None,
            "nickname": contact.get("nickname") or None,
            "delivery_address": contact.get("delivery_address") or None,
            "is_registered": False,
        })
        logger.info("customers.resolve created guest customer_id=%s", customer.get("id"))
        return customer

    changes = {
        "name": contact["name"],
        "delivery_address": contact.get("delivery_address") or customer.get("delivery_address"),
    }
    updated = repository.update_customer(customer["id"], changes)
    return updated or {**customer, **changes}
