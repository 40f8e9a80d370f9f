"""
Signature des confirmations de paiement:
HMAC-SHA256(secret, gateway_order_id + "|" + gateway_payment_id), encodé en hexadécimal.
"""
import hashlib
import hmac

from marketplace import config
from marketplace.checkout.errors import CheckoutConfigurationError

def expected_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    body = f"{gateway_order_id}|{gateway_payment_id}"
    return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()

def verify_signature(gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
    """
    Compare la signature fournie par le client à la signature recalculée (égalité exacte,
    comparaison à temps constant). Secret absent: erreur de configuration.
    """
    secret = config.GATEWAY_KEY_SECRET
    if not secret:
        raise CheckoutConfigurationError("Server configuration error")
    expected = expected_signature(gateway_order_id or "", gateway_payment_id or "", secret)
    return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))
