"""
Modèles du panier: lignes saisies par le client et résultat de valorisation.
Les prix et vendeurs viennent toujours du résultat de valorisation, jamais du client.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class CartLineInput(BaseModel):
    product_id: str = Field(min_length=1)
    variant_id: Optional[str] = None
    quantity: int = Field(gt=0)

    @field_validator("variant_id", mode="before")
    def empty_variant_is_none(cls, v):
        # "" et None désignent tous deux le produit sans variante
        return v or None


class ValuedLine(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    name: str
    image: Optional[str] = None
    price: float
    quantity: int
    seller_id: Optional[str] = None
    stock: int = 0

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


class CalculationResult(BaseModel):
    items: List[ValuedLine] = Field(default_factory=list)
    subtotal: float = 0
    shipping: float = 0
    tax: float = 0
    platform_fee: float = 0
    discount_amount: float = 0
    discount_code: Optional[str] = None
    discount_source: Optional[str] = None  # "store" | "seller"
    discount_seller_id: Optional[str] = None
    total: float = 0
    is_stock_problem: bool = False
    stock_errors: List[str] = Field(default_factory=list)
