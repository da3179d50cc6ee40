"""
Schémas d'entrée du checkout, partagés par l'API et le client Python
(les mêmes règles bloquent une soumission avant tout appel réseau).
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from motoshop.orders.models import PaymentMethod

EMAIL_REQUIRED_MESSAGE = "Email obrigatório para pagamento com cartão ou PIX"

class ContactInfo(BaseModel):
    """Coordonnées figées dans la commande (client authentifié ou invité)."""
    name: str
    phone: str
    email: Optional[EmailStr] = None
    nickname: Optional[str] = None
    delivery_address: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

class GuestContact(ContactInfo):
    # Les clients authentifiés sont déjà validés, seul l'invité passe par ces bornes
    name: str = Field(min_length=2)
    phone: str = Field(min_length=10)

    @field_validator("name", "phone", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

class CheckoutItem(BaseModel):
    product_id: Optional[int] = None
    product_name: str = Field(min_length=1)
    product_price: float = Field(ge=0)
    quantity: int = Field(ge=1)

def items_total(items: List[CheckoutItem]) -> Decimal:
    return sum(
        (Decimal(str(i.product_price)) * i.quantity for i in items),
        Decimal("0"),
    )

def require_email(method: PaymentMethod, email: Optional[str]) -> None:
    if method.uses_provider and not email:
        raise ValueError(EMAIL_REQUIRED_MESSAGE)

class CheckoutRequest(BaseModel):
    """
    Corps d'un checkout.
    - customer: absent pour un client authentifié (coordonnées relues en base).
    - total: optionnel; s'il est fourni il doit correspondre aux lignes (à 0.01 près).
    """
    customer: Optional[GuestContact] = None
    delivery_address: Optional[str] = None
    items: List[CheckoutItem] = Field(min_length=1)
    total: Optional[float] = None
    payment_method: PaymentMethod = PaymentMethod.WHATSAPP

    @model_validator(mode="after")
    def _check(self):
        if self.total is not None:
            if abs(Decimal(str(self.total)) - items_total(self.items)) > Decimal("0.01"):
                raise ValueError("Total não confere com os itens do carrinho")
        if self.customer is not None:
            require_email(self.payment_method, self.customer.email)
        return self
