"""
Adaptateur passerelle de paiement: centralise les appels et la configuration.

API REST compatible Razorpay:
- POST {GATEWAY_API_URL}/orders, authentification basique (key_id, key_secret)
- corps: {amount (unités mineures), currency, receipt, payment_capture}
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
import logging

import httpx

from marketplace import config
from marketplace.checkout.errors import CheckoutConfigurationError, GatewayError

logger = logging.getLogger(__name__)

# module marketplace.payments.gateway_client
def to_minor_units(amount: float) -> int:
    """Montant en unités mineures (x100), arrondi half-up: 549.5 -> 54950."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def require_gateway() -> tuple:
    """Retourne (key_id, key_secret) ou lève une erreur de configuration."""
    if not config.GATEWAY_KEY_ID or not config.GATEWAY_KEY_SECRET:
        raise CheckoutConfigurationError("Server configuration error")
    return config.GATEWAY_KEY_ID, config.GATEWAY_KEY_SECRET

def _http_client() -> httpx.Client:
    return httpx.Client(base_url=config.GATEWAY_API_URL, timeout=config.GATEWAY_TIMEOUT_SECONDS)

def create_order(receipt_id: str, amount_minor: int, currency: Optional[str] = None) -> Dict[str, Any]:
    """
    Crée une commande côté passerelle (capture automatique du paiement).
    Retour: {id, amount (int), currency, receipt}
    Erreurs: GatewayError si la passerelle est injoignable ou refuse la requête.
    """
    key_id, key_secret = require_gateway()
    payload = {
        "amount": int(amount_minor),
        "currency": currency or config.GATEWAY_CURRENCY,
        "receipt": receipt_id,
        "payment_capture": True,
    }
    try:
        with _http_client() as client:
            resp = client.post("/orders", json=payload, auth=(key_id, key_secret))
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPStatusError as e:
        logger.error(
            "payments.gateway_client.create_order rejected status=%s receipt=%s body=%s",
            e.response.status_code, receipt_id, e.response.text[:500],
        )
        raise GatewayError() from e
    except (httpx.HTTPError, ValueError) as e:
        logger.exception("payments.gateway_client.create_order failed receipt=%s", receipt_id)
        raise GatewayError() from e

    amount = data.get("amount")
    return {
        "id": data.get("id"),
        "amount": int(amount) if amount is not None else int(amount_minor),
        "currency": data.get("currency") or payload["currency"],
        "receipt": data.get("receipt") or receipt_id,
    }

def fetch_order(gateway_order_id: str) -> Dict[str, Any]:
    """
    Relit une commande passerelle (montant réellement facturé).
    Retour: {id, amount (int), currency, receipt, status}
    """
    key_id, key_secret = require_gateway()
    try:
        with _http_client() as client:
            resp = client.get(f"/orders/{gateway_order_id}", auth=(key_id, key_secret))
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPStatusError as e:
        logger.error(
            "payments.gateway_client.fetch_order rejected status=%s gateway_order_id=%s body=%s",
            e.response.status_code, gateway_order_id, e.response.text[:500],
        )
        raise GatewayError() from e
    except (httpx.HTTPError, ValueError) as e:
        logger.exception("payments.gateway_client.fetch_order failed gateway_order_id=%s", gateway_order_id)
        raise GatewayError() from e

    amount = data.get("amount")
    return {
        "id": data.get("id") or gateway_order_id,
        "amount": int(amount) if amount is not None else None,
        "currency": data.get("currency"),
        "receipt": data.get("receipt"),
        "status": data.get("status"),
    }
