import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from marketplace.utils.security import require_user
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.checkout.errors import GENERIC_ERROR_MESSAGE
from marketplace.payments import intent as payments_intent
from marketplace.payments import finalizer as payments_finalizer
from marketplace.payments.models import FinalizePaymentRequest, PaymentIntentRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Payments API"])

# module marketplace.payments.views
@router.post("/intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_create_payment_intent(body: PaymentIntentRequest, user: dict = Depends(require_user)):
    """
    Crée l'intention de paiement (commande passerelle) pour le panier revalorisé.
    - Aucune commande vendeur n'est créée à ce stade
    - Réponse: {ok, gateway_order: {order_id, amount, currency, key}, total, items}
    - Erreurs: 400 panier vide, 409 stock, 502 passerelle, 500 configuration
    """
    try:
        result = payments_intent.create_payment_intent(
            buyer_id=user.get("id"),
            items=body.items,
            discount_code=body.discount_code,
        )
        return JSONResponse(result)
    except HTTPException:
        raise
    except Exception:
        logger.exception("payments.views.api_create_payment_intent failed buyer_id=%s", user.get("id"))
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.post("/finalize", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_finalize_payment(body: FinalizePaymentRequest, user: dict = Depends(require_user)):
    """
    Confirme le paiement (signature HMAC) puis crée les commandes vendeur.
    - Idempotent par gateway_payment_id: une confirmation rejouée renvoie les mêmes ids
    - Réponse: {ok, checkout_id, order_ids, idempotent}
    - Erreurs: 400 signature invalide, 403 commandes d'un autre acheteur, 404 adresse,
      409 stock modifié pendant le paiement, 500 paiement capturé sans commande
    """
    try:
        result = payments_finalizer.finalize_payment(
            buyer_id=user.get("id"),
            gateway_order_id=body.gateway_order_id,
            gateway_payment_id=body.gateway_payment_id,
            gateway_signature=body.gateway_signature,
            items=body.items,
            address_id=body.address_id,
            guest_email=body.guest_email,
            guest_phone=body.guest_phone,
            discount_code=body.discount_code,
        )
        return JSONResponse(result)
    except HTTPException:
        raise
    except Exception:
        logger.critical(
            "payments.views.api_finalize_payment failed buyer_id=%s gateway_payment_id=%s",
            user.get("id"), body.gateway_payment_id, exc_info=True,
        )
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)
