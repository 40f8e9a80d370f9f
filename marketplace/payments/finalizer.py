"""
Finalisation du paiement en ligne: machine à états.

    RECEIVED -> SIGNATURE_VERIFIED -> {IDEMPOTENT_HIT | REVALUATED} -> {ORDERS_CREATED | ROLLED_BACK}

1) signature HMAC (fatale, sans effet de bord, journalisée comme événement de sécurité)
2) idempotence: commandes existantes pour ce paiement => renvoyées telles quelles
3) revalorisation des lignes, puis contrôle du montant facturé par la passerelle
   (commande passerelle relue: montant != total revalorisé => refus, sans effet de bord).
   Le paiement est déjà capturé: un problème de stock est un cas de réconciliation
   support, pas un remboursement automatique.
4) adresse de livraison
5) partition + matérialisation: payment_status="paid", checkout_id=gateway_order_id,
   gateway_payment_id/gateway_signature apposés sur chaque commande
6) échec: compensation puis PaymentCapturedOrderFailed (journal CRITICAL)

L'index unique (gateway_payment_id, seller_id) ferme la course entre deux
confirmations simultanées: la violation d'unicité est traitée comme un hit idempotent
(seulement si les commandes stockées couvrent tous les vendeurs, sinon 409 à réessayer).
"""
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from marketplace.addresses.service import resolve_owned_address
from marketplace.cart.models import CartLineInput
from marketplace.checkout import service
from marketplace.checkout.context import (
    CheckoutContext,
    PAYMENT_METHOD_GATEWAY,
    PAYMENT_STATUS_PAID,
)
from marketplace.checkout.errors import (
    CheckoutAuthorizationError,
    CheckoutError,
    CheckoutInProgressError,
    DuplicateOrderError,
    PaymentCapturedOrderFailed,
    PaymentMismatchError,
    SignatureInvalidError,
    StockConflictError,
)
from marketplace.orders import repository as orders_repository
from marketplace.payments import gateway_client, signature

logger = logging.getLogger(__name__)


class FinalizeState(str, Enum):
    RECEIVED = "RECEIVED"
    SIGNATURE_VERIFIED = "SIGNATURE_VERIFIED"
    IDEMPOTENT_HIT = "IDEMPOTENT_HIT"
    REVALUATED = "REVALUATED"
    ORDERS_CREATED = "ORDERS_CREATED"
    ROLLED_BACK = "ROLLED_BACK"


def _transition(state: FinalizeState, gateway_order_id: str, gateway_payment_id: str) -> FinalizeState:
    logger.info(
        "payments.finalize state=%s gateway_order_id=%s gateway_payment_id=%s",
        state.value, gateway_order_id, gateway_payment_id,
    )
    return state


def _check_charged_amount(gateway_order_id: str, gateway_payment_id: str, buyer_id: str, total: float) -> None:
    """Le total revalorisé doit être exactement le montant de la commande passerelle signée."""
    gateway_order = gateway_client.fetch_order(gateway_order_id)
    expected = gateway_client.to_minor_units(total)
    if gateway_order.get("amount") != expected:
        logger.warning(
            "payments.finalize SECURITY amount mismatch buyer_id=%s gateway_order_id=%s gateway_payment_id=%s charged=%s cart=%s",
            buyer_id, gateway_order_id, gateway_payment_id, gateway_order.get("amount"), expected,
        )
        raise PaymentMismatchError("Payment does not match cart")


def _replay(existing: List[dict], buyer_id: str, gateway_order_id: str, gateway_payment_id: str) -> Dict[str, Any]:
    if any(str(row.get("user_id")) != str(buyer_id) for row in existing if row.get("user_id")):
        logger.warning(
            "payments.finalize SECURITY replay by another buyer buyer_id=%s gateway_payment_id=%s",
            buyer_id, gateway_payment_id,
        )
        raise CheckoutAuthorizationError("Forbidden")
    state = _transition(FinalizeState.IDEMPOTENT_HIT, gateway_order_id, gateway_payment_id)
    return {
        "ok": True,
        "checkout_id": existing[0].get("checkout_id") or gateway_order_id,
        "order_ids": [str(row["id"]) for row in existing],
        "idempotent": True,
        "state": state.value,
    }


def finalize_payment(
    *,
    buyer_id: str,
    gateway_order_id: str,
    gateway_payment_id: str,
    gateway_signature: str,
    items: List[CartLineInput],
    address_id: str,
    guest_email: Optional[str] = None,
    guest_phone: Optional[str] = None,
    discount_code: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Confirme un paiement et crée les commandes vendeur (au plus une fois par paiement).
    Retour: {ok, checkout_id, order_ids, idempotent, state}
    """
    _transition(FinalizeState.RECEIVED, gateway_order_id, gateway_payment_id)

    if not signature.verify_signature(gateway_order_id, gateway_payment_id, gateway_signature):
        logger.warning(
            "payments.finalize SECURITY invalid signature buyer_id=%s gateway_order_id=%s gateway_payment_id=%s",
            buyer_id, gateway_order_id, gateway_payment_id,
        )
        raise SignatureInvalidError("Invalid payment signature")
    _transition(FinalizeState.SIGNATURE_VERIFIED, gateway_order_id, gateway_payment_id)

    existing = orders_repository.find_orders_by_gateway_payment_id(gateway_payment_id)
    if existing:
        return _replay(existing, buyer_id, gateway_order_id, gateway_payment_id)

    service.ensure_lines(items)
    try:
        calculation = service.revalue(items, discount_code, stock_message="Stock changed during payment")
    except StockConflictError as e:
        logger.error(
            "payments.finalize RECONCILE stock changed after capture buyer_id=%s gateway_order_id=%s gateway_payment_id=%s stock_errors=%s",
            buyer_id, gateway_order_id, gateway_payment_id, e.stock_errors,
        )
        raise
    _check_charged_amount(gateway_order_id, gateway_payment_id, buyer_id, calculation.total)
    _transition(FinalizeState.REVALUATED, gateway_order_id, gateway_payment_id)

    address = resolve_owned_address(address_id, buyer_id, missing_is_forbidden=False)

    ctx = CheckoutContext(
        checkout_id=gateway_order_id,
        buyer_id=str(buyer_id),
        address_id=str(address.get("id") or address_id),
        payment_method=PAYMENT_METHOD_GATEWAY,
        payment_status=PAYMENT_STATUS_PAID,
        guest_email=guest_email or address.get("email"),
        guest_phone=guest_phone or address.get("phone"),
        discount_code=calculation.discount_code,
        gateway_order_id=gateway_order_id,
        gateway_payment_id=gateway_payment_id,
        gateway_signature=gateway_signature,
    )

    try:
        order_ids = service.place_seller_orders(calculation, ctx)
    except DuplicateOrderError as e:
        # Confirmation concurrente déjà matérialisée: renvoyer son résultat
        existing = orders_repository.find_orders_by_gateway_payment_id(gateway_payment_id)
        if existing:
            expected_sellers = {str(item.seller_id) for item in calculation.items}
            stored_sellers = {str(row.get("seller_id")) for row in existing}
            if stored_sellers != expected_sellers:
                # Tentative concurrente en cours (ou en cours d'annulation): ne pas la présenter comme aboutie
                logger.critical(
                    "payments.finalize INCOMPLETE concurrent materialization expected=%s stored=%s %s",
                    sorted(expected_sellers), sorted(stored_sellers), ctx.log_fields(),
                )
                raise CheckoutInProgressError(context={"stored_sellers": sorted(stored_sellers)}) from e
            return _replay(existing, buyer_id, gateway_order_id, gateway_payment_id)
        _transition(FinalizeState.ROLLED_BACK, gateway_order_id, gateway_payment_id)
        logger.critical("payments.finalize PAYMENT_CAPTURED_ORDER_FAILED duplicate without rows %s", ctx.log_fields())
        raise PaymentCapturedOrderFailed(context=ctx.model_dump()) from e
    except CheckoutError:
        _transition(FinalizeState.ROLLED_BACK, gateway_order_id, gateway_payment_id)
        raise

    state = _transition(FinalizeState.ORDERS_CREATED, gateway_order_id, gateway_payment_id)
    return service.checkout_response(ctx, order_ids, calculation, idempotent=False, state=state.value)
