from typing import Optional, Tuple
from pydantic import BaseModel, Field

CartKey = Tuple[int, Optional[int]]

class CartItem(BaseModel):
    """
    Ligne du panier client.
    - unit_price est figé à l'ajout: prix de la variation si présente, sinon prix du produit.
    - (product_id, variation_id) identifie la ligne.
    """
    product_id: int
    variation_id: Optional[int] = None
    name: str
    variation_label: Optional[str] = None
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)

    @property
    def key(self) -> CartKey:
        return (self.product_id, self.variation_id)

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.variation_label})" if self.variation_label else self.name
