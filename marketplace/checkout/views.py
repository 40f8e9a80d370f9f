# module marketplace.checkout.views

"""Endpoints du checkout direct et de l'aperçu des totaux.
- /direct: paiement à la livraison, crée immédiatement une commande par vendeur.
- /totals: aperçu des montants (aucune écriture, pas de barrière de stock).
Sécurité:
- require_user: l'acheteur est toujours l'utilisateur authentifié, jamais le corps de requête.
- optional_rate_limit: limite les tentatives de checkout (10 req / 60s).
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
import logging

from marketplace.utils.security import require_user
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.checkout import direct as direct_checkout
from marketplace.checkout import service as checkout_service
from marketplace.checkout.errors import CheckoutError, GENERIC_ERROR_MESSAGE
from marketplace.checkout.models import DirectCheckoutRequest, TotalsRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])


@router.post("/direct", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_direct_checkout(body: DirectCheckoutRequest, user: dict = Depends(require_user)):
    """Checkout paiement à la livraison.
    Réponse: {ok, checkout_id, order_ids, total_amount}
    Erreurs: 400 panier invalide, 403 adresse d'un autre acheteur, 409 stock,
    500 échec de création (commandes déjà créées supprimées).
    """
    try:
        result = direct_checkout.create_direct_checkout(
            buyer_id=user.get("id"),
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
        logger.exception("checkout.views.api_direct_checkout failed buyer_id=%s", user.get("id"))
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


@router.post("/totals")
def api_checkout_totals(body: TotalsRequest, user: dict = Depends(require_user)):
    try:
        calculation = checkout_service.calculate_checkout_totals(body.items, body.discount_code)
        return JSONResponse({"ok": True, **calculation.model_dump()})
    except CheckoutError:
        raise
    except Exception:
        logger.exception("checkout.views.api_checkout_totals failed buyer_id=%s", user.get("id"))
        raise HTTPException(status_code=500, detail="Failed to calculate totals")
