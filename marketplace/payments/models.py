from typing import List, Optional
from pydantic import BaseModel, Field

from marketplace.cart.models import CartLineInput


class PaymentIntentRequest(BaseModel):
    items: List[CartLineInput] = Field(default_factory=list)
    discount_code: Optional[str] = None


class FinalizePaymentRequest(BaseModel):
    """Confirmation renvoyée par le widget de paiement + panier d'origine."""
    gateway_order_id: str = Field(min_length=1)
    gateway_payment_id: str = Field(min_length=1)
    gateway_signature: str = Field(min_length=1)
    items: List[CartLineInput] = Field(default_factory=list)
    address_id: str = Field(min_length=1)
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    discount_code: Optional[str] = None
