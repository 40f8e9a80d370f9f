"""
Modèle des commandes vendeur.
- OrderLine: ligne figée au prix d'achat
- SellerShare: part d'un vendeur produite par le partitionneur (lignes + coûts)
- build_order_document: document persisté (table seller_orders) pour une part et un contexte
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from marketplace.checkout.context import CheckoutContext, new_order_number

ORDER_STATUSES = ("PENDING", "ACCEPTED", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
PAYMENT_METHODS = ("razorpay", "cod")


class OrderLine(BaseModel):
    product_id: str
    product_name: str
    product_image: Optional[str] = None
    variant_id: Optional[str] = None
    price_at_purchase: float
    quantity: int
    seller_id: str
    status: str = "PENDING"


class SellerShare(BaseModel):
    seller_id: str
    items: List[OrderLine] = Field(default_factory=list)
    subtotal: float = 0
    shipping: float = 0
    tax: float = 0
    platform_fee: float = 0
    discount: float = 0
    total: float = 0


def build_order_document(share: SellerShare, ctx: CheckoutContext) -> Dict[str, Any]:
    """Construit la ligne seller_orders pour un vendeur; gateway_* restent None hors paiement en ligne."""
    return {
        "order_number": new_order_number(),
        "user_id": ctx.buyer_id,
        "seller_id": share.seller_id,
        "items": [item.model_dump() for item in share.items],
        "shipping_address_id": ctx.address_id,
        "guest_email": ctx.guest_email,
        "guest_phone": ctx.guest_phone,
        "payment_method": ctx.payment_method,
        "payment_status": ctx.payment_status,
        "status": "PENDING",
        "subtotal": share.subtotal,
        "shipping_cost": share.shipping,
        "gst": share.tax,
        "platform_fee": share.platform_fee,
        "discount_code": ctx.discount_code if share.discount else None,
        "discount_amount": share.discount,
        "total": share.total,
        "checkout_id": ctx.checkout_id,
        "gateway_order_id": ctx.gateway_order_id,
        "gateway_payment_id": ctx.gateway_payment_id,
        "gateway_signature": ctx.gateway_signature,
    }
