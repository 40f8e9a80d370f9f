from typing import Any, Dict

from marketplace.addresses import repository
from marketplace.checkout.errors import AddressNotFoundError, CheckoutAuthorizationError

def address_owner(address: Dict[str, Any]) -> str:
    owner = address.get("user_id") or address.get("user")
    if isinstance(owner, dict):
        owner = owner.get("id")
    return str(owner or "")

def resolve_owned_address(address_id: str, buyer_id: str, *, missing_is_forbidden: bool = True) -> Dict[str, Any]:
    """
    Charge l'adresse et vérifie qu'elle appartient à l'acheteur.
    - Adresse d'un tiers: CheckoutAuthorizationError("Invalid address").
    - Adresse absente: même erreur (checkout direct), ou AddressNotFoundError
      si missing_is_forbidden=False (finalisation après paiement).
    """
    address = repository.find_address_by_id(address_id)
    if not address:
        if missing_is_forbidden:
            raise CheckoutAuthorizationError("Invalid address")
        raise AddressNotFoundError("Address not found")
    if address_owner(address) != str(buyer_id):
        raise CheckoutAuthorizationError("Invalid address")
    return address
