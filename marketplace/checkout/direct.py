"""
Chemin direct (paiement à la livraison): pas d'intention de paiement,
les commandes vendeur sont créées immédiatement avec payment_status="pending".
"""
from typing import Any, Dict, List, Optional
import logging

from marketplace.addresses.service import resolve_owned_address
from marketplace.cart.models import CartLineInput
from marketplace.checkout import service
from marketplace.checkout.context import (
    CheckoutContext,
    PAYMENT_METHOD_COD,
    PAYMENT_STATUS_PENDING,
    new_checkout_id,
)

logger = logging.getLogger(__name__)

def create_direct_checkout(
    *,
    buyer_id: str,
    items: List[CartLineInput],
    address_id: str,
    guest_email: Optional[str] = None,
    guest_phone: Optional[str] = None,
    discount_code: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Étapes:
    1) panier non vide, adresse existante et appartenant à l'acheteur
    2) revalorisation serveur, refus si problème de stock
    3) partition + matérialisation (checkout_id généré localement)
    4) en cas d'échec: compensation puis erreur générique
    Retour: {ok, checkout_id, order_ids, total_amount}
    """
    service.ensure_lines(items)
    address = resolve_owned_address(address_id, buyer_id)
    calculation = service.revalue(items, discount_code)

    ctx = CheckoutContext(
        checkout_id=new_checkout_id(),
        buyer_id=str(buyer_id),
        address_id=str(address.get("id") or address_id),
        payment_method=PAYMENT_METHOD_COD,
        payment_status=PAYMENT_STATUS_PENDING,
        guest_email=guest_email or address.get("email"),
        guest_phone=guest_phone or address.get("phone"),
        discount_code=calculation.discount_code,
    )
    order_ids = service.place_seller_orders(calculation, ctx)
    logger.info("checkout.direct created orders=%s %s", order_ids, ctx.log_fields())
    return service.checkout_response(ctx, order_ids, calculation)
