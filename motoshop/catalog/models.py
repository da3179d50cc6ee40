"""
Vue lecture seule du catalogue, telle que consommée par le panier et le checkout.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

class ProductVariation(BaseModel):
    id: int
    product_id: Optional[int] = None
    label: str
    price: float = Field(ge=0)
    in_stock: bool = True

class Product(BaseModel):
    id: int
    name: str
    price: float = Field(ge=0)
    in_stock: bool = True
    variations: List[ProductVariation] = Field(default_factory=list)

    def variation(self, variation_id: Optional[int]) -> Optional[ProductVariation]:
        if variation_id is None:
            return None
        return next((v for v in self.variations if v.id == variation_id), None)
