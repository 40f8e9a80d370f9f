"""
Corps de requête du checkout (API v1).
Seuls produit, variante et quantité sont acceptés du client: prix et vendeurs
sont toujours recalculés côté serveur.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from marketplace.cart.models import CartLineInput


class TotalsRequest(BaseModel):
    items: List[CartLineInput] = Field(default_factory=list)
    discount_code: Optional[str] = None


class DirectCheckoutRequest(BaseModel):
    items: List[CartLineInput] = Field(default_factory=list)
    address_id: str = Field(min_length=1)
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    discount_code: Optional[str] = None
