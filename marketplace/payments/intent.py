"""
Émission de l'intention de paiement (chemin en ligne, "paiement d'abord").

Aucune commande vendeur n'est créée ici: seule une commande passerelle pour le
total du panier existe tant que le paiement n'est pas confirmé. Une intention
abandonnée par le client reste sans effet.
"""
from typing import Any, Dict, List, Optional
import logging

from marketplace import config
from marketplace.cart.models import CartLineInput
from marketplace.checkout import service
from marketplace.checkout.context import new_receipt_id
from marketplace.payments import gateway_client

logger = logging.getLogger(__name__)

def create_payment_intent(*, buyer_id: str, items: List[CartLineInput], discount_code: Optional[str] = None) -> Dict[str, Any]:
    """
    1) panier non vide + revalorisation serveur (refus si problème de stock)
    2) reçu éphémère PRE_<ms>_<4 derniers caractères de l'acheteur>
    3) commande passerelle pour le total en unités mineures
    Retour: {ok, gateway_order: {order_id, amount, currency, key}, total, items}
    """
    service.ensure_lines(items)
    calculation = service.revalue(items, discount_code)

    receipt_id = new_receipt_id(buyer_id)
    gateway_order = gateway_client.create_order(receipt_id, gateway_client.to_minor_units(calculation.total))
    logger.info(
        "payments.intent created gateway_order_id=%s amount=%s buyer_id=%s receipt=%s",
        gateway_order.get("id"), gateway_order.get("amount"), buyer_id, receipt_id,
    )
    return {
        "ok": True,
        "gateway_order": {
            "order_id": gateway_order.get("id"),
            "amount": gateway_order.get("amount"),
            "currency": gateway_order.get("currency"),
            "key": config.GATEWAY_KEY_ID,
        },
        "total": calculation.total,
        "items": [item.model_dump() for item in calculation.items],
    }
