"""
Contexte explicite d'une tentative de checkout.

Valeur immuable transmise à chaque composant (partition, matérialisation,
compensation). Aucune corrélation n'est portée par un état global.
"""
from typing import Optional
import random
import string
import time

from pydantic import BaseModel, ConfigDict

PAYMENT_METHOD_GATEWAY = "razorpay"
PAYMENT_METHOD_COD = "cod"

PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_PAID = "paid"

_BASE36 = string.digits + string.ascii_uppercase


def _suffix(length: int = 6) -> str:
    return "".join(random.choices(_BASE36, k=length))


def new_checkout_id() -> str:
    """CHK-<epoch ms>-<6 caractères base36>"""
    return f"CHK-{int(time.time() * 1000)}-{_suffix()}"


def new_order_number() -> str:
    """ORD-<epoch ms>-<6 caractères base36>"""
    return f"ORD-{int(time.time() * 1000)}-{_suffix()}"


def new_receipt_id(buyer_id: str) -> str:
    """Reçu éphémère de l'intention de paiement, non lié à une commande."""
    return f"PRE_{int(time.time() * 1000)}_{str(buyer_id)[-4:]}"


class CheckoutContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    checkout_id: str
    buyer_id: str
    address_id: str
    payment_method: str
    payment_status: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    discount_code: Optional[str] = None
    gateway_order_id: Optional[str] = None
    gateway_payment_id: Optional[str] = None
    gateway_signature: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAYMENT_STATUS_PAID

    def log_fields(self) -> str:
        return (
            f"checkout_id={self.checkout_id} buyer_id={self.buyer_id} "
            f"payment_method={self.payment_method} gateway_payment_id={self.gateway_payment_id}"
        )
