"""
Cas d'usage partagés du checkout: orchestre valorisation, partition, matérialisation et saga.

place_seller_orders est l'unique routine de découpage/création utilisée par les
deux chemins (paiement à la livraison et paiement en ligne finalisé).
"""
from typing import Any, Dict, List, Optional
import logging

from marketplace.cart import repository as cart_repository
from marketplace.cart import valuator
from marketplace.cart.models import CalculationResult, CartLineInput
from marketplace.checkout import partitioner
from marketplace.checkout.context import CheckoutContext
from marketplace.checkout.errors import (
    CartValidationError,
    CheckoutError,
    DuplicateOrderError,
    PaymentCapturedOrderFailed,
    PersistencePartialFailure,
    StockConflictError,
)
from marketplace.checkout.saga import Saga
from marketplace.orders import materializer

logger = logging.getLogger(__name__)

def ensure_lines(lines: List[CartLineInput]) -> List[CartLineInput]:
    if not lines:
        raise CartValidationError("Cart is empty")
    return lines

def revalue(lines: List[CartLineInput], discount_code: Optional[str] = None, *, stock_message: Optional[str] = None) -> CalculationResult:
    """
    Valorise côté serveur et applique la barrière de stock.
    - stock_message: message de remplacement (ex. "Stock changed during payment").
    """
    calculation = valuator.valuate_cart(lines, discount_code)
    if calculation.is_stock_problem:
        detail = stock_message or f"Stock issues: {', '.join(calculation.stock_errors)}"
        raise StockConflictError(detail, stock_errors=calculation.stock_errors)
    return calculation

def calculate_checkout_totals(lines: List[CartLineInput], discount_code: Optional[str] = None) -> CalculationResult:
    """Aperçu des totaux pour l'affichage; n'applique pas la barrière de stock."""
    return valuator.valuate_cart(ensure_lines(lines), discount_code)

def place_seller_orders(calculation: CalculationResult, ctx: CheckoutContext) -> List[str]:
    """
    Partitionne puis matérialise une commande par vendeur.
    En cas d'échec après création partielle, compense (saga) avant de lever:
    - DuplicateOrderError: paiement déjà matérialisé par une tentative concurrente
    - StockConflictError: réservation de stock refusée
    - PaymentCapturedOrderFailed: paiement capturé mais commandes non créées (en ligne)
    - PersistencePartialFailure: échec générique (paiement à la livraison)
    """
    shares = partitioner.partition_by_seller(calculation)
    saga = Saga(ctx.checkout_id)
    try:
        order_ids = materializer.materialize_orders(shares, ctx, saga)
    except DuplicateOrderError:
        saga.compensate()
        raise
    except StockConflictError as e:
        saga.compensate()
        if ctx.is_paid:
            logger.critical(
                "checkout.place_seller_orders PAYMENT_CAPTURED_STOCK_CONFLICT stock_errors=%s %s",
                e.stock_errors, ctx.log_fields(),
            )
            raise StockConflictError("Stock changed during payment", stock_errors=e.stock_errors) from e
        raise
    except Exception as e:
        created_ids = e.created_ids if isinstance(e, PersistencePartialFailure) else []
        run, failed = saga.compensate()
        if ctx.is_paid:
            logger.critical(
                "checkout.place_seller_orders PAYMENT_CAPTURED_ORDER_FAILED created=%s compensated=%s failed=%s %s",
                created_ids, run, failed, ctx.log_fields(), exc_info=True,
            )
            raise PaymentCapturedOrderFailed(created_ids=created_ids, context=ctx.model_dump()) from e
        logger.error(
            "checkout.place_seller_orders failed created=%s compensated=%s failed=%s %s",
            created_ids, run, failed, ctx.log_fields(), exc_info=True,
        )
        if isinstance(e, CheckoutError) and not isinstance(e, PersistencePartialFailure):
            raise
        raise PersistencePartialFailure(created_ids=created_ids) from e

    if calculation.discount_code:
        cart_repository.increment_discount_usage(calculation.discount_code)
    return order_ids

def checkout_response(ctx: CheckoutContext, order_ids: List[str], calculation: Optional[CalculationResult] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"ok": True, "checkout_id": ctx.checkout_id, "order_ids": order_ids}
    if calculation is not None:
        body["total_amount"] = calculation.total
    body.update(extra)
    return body
