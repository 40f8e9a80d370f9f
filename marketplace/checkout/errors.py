"""
Taxonomie des erreurs du checkout.

Chaque erreur est une HTTPException FastAPI portant:
- detail: message court, lisible par l'acheteur
- kind: étiquette stable pour les logs/alertes et le corps JSON
Le handler enregistré dans app_setup.exceptions les sérialise en
{"ok": false, "error": detail, "kind": kind}.
"""
from typing import Any, Dict, List, Optional
from fastapi import HTTPException

GENERIC_ERROR_MESSAGE = "Something went wrong, please try again"


class CheckoutError(HTTPException):
    kind = "checkout_error"
    default_status = 400
    default_detail = "Checkout failed"

    def __init__(self, detail: Optional[str] = None, *, status_code: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=status_code or self.default_status, detail=detail or self.default_detail)
        self.context = context or {}


class CartValidationError(CheckoutError):
    kind = "validation"
    default_detail = "Cart is invalid"


class CheckoutAuthorizationError(CheckoutError):
    kind = "authorization"
    default_status = 403
    default_detail = "Invalid address"


class AddressNotFoundError(CheckoutError):
    kind = "not_found"
    default_status = 404
    default_detail = "Address not found"


class StockConflictError(CheckoutError):
    kind = "stock_conflict"
    default_status = 409
    default_detail = "Stock issues"

    def __init__(self, detail: Optional[str] = None, *, stock_errors: Optional[List[str]] = None, **kwargs):
        super().__init__(detail, **kwargs)
        self.stock_errors = list(stock_errors or [])


class SignatureInvalidError(CheckoutError):
    kind = "signature_invalid"
    default_detail = "Invalid payment signature"


class PersistencePartialFailure(CheckoutError):
    """Échec de persistance après création partielle; porte les ids créés avant l'échec."""
    kind = "persistence_partial_failure"
    default_status = 500
    default_detail = "Failed to create orders"

    def __init__(self, detail: Optional[str] = None, *, created_ids: Optional[List[str]] = None, **kwargs):
        super().__init__(detail, **kwargs)
        self.created_ids = list(created_ids or [])


class PaymentCapturedOrderFailed(PersistencePartialFailure):
    kind = "payment_captured_order_failed"
    default_detail = "Payment verified but order creation failed. Please contact support."


class PaymentMismatchError(CheckoutError):
    """Le panier confirmé ne correspond pas au montant facturé par la passerelle."""
    kind = "payment_mismatch"
    default_detail = "Payment does not match cart"


class CheckoutInProgressError(CheckoutError):
    kind = "in_progress"
    default_status = 409
    default_detail = "Payment is still being processed, please retry shortly"


class GatewayError(CheckoutError):
    kind = "gateway"
    default_status = 502
    default_detail = "Payment gateway unavailable, please try again"


class CheckoutConfigurationError(CheckoutError):
    kind = "configuration"
    default_status = 500
    default_detail = "Server configuration error"


class DuplicateOrderError(Exception):
    """Violation de l'index unique (gateway_payment_id, seller_id): confirmation déjà traitée."""

    def __init__(self, gateway_payment_id: Optional[str], seller_id: Optional[str]):
        super().__init__(f"duplicate order gateway_payment_id={gateway_payment_id} seller_id={seller_id}")
        self.gateway_payment_id = gateway_payment_id
        self.seller_id = seller_id


def error_body(exc: CheckoutError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"ok": False, "error": exc.detail, "kind": exc.kind}
    if isinstance(exc, StockConflictError) and exc.stock_errors:
        body["stock_errors"] = exc.stock_errors
    return body
