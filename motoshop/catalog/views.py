# module motoshop.catalog.views
"""Lecture du catalogue pour hydrater le panier côté client (prix, variations, stock)."""
from typing import List
from fastapi import APIRouter, HTTPException

from motoshop.catalog import repository as catalog_repository
from motoshop.catalog.models import Product

router = APIRouter(prefix="/api/v1/products", tags=["Catalog API"])

@router.get("", response_model=List[Product])
def list_products():
    return [Product.model_validate(p) for p in catalog_repository.list_products()]

@router.get("/{product_id}", response_model=Product)
def get_product(product_id: int):
    product = catalog_repository.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Produto não encontrado")
    return Product.model_validate(product)
