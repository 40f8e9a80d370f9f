import pytest

from marketplace.addresses.service import address_owner, resolve_owned_address
from marketplace.checkout.errors import AddressNotFoundError, CheckoutAuthorizationError

def test_owned_address_is_returned(addresses):
    assert resolve_owned_address("addr-1", "buyer-0001")["id"] == "addr-1"

def test_foreign_address_is_forbidden(addresses):
    with pytest.raises(CheckoutAuthorizationError):
        resolve_owned_address("addr-other", "buyer-0001")

def test_missing_address_depends_on_path(addresses):
    with pytest.raises(CheckoutAuthorizationError):
        resolve_owned_address("nope", "buyer-0001")
    with pytest.raises(AddressNotFoundError):
        resolve_owned_address("nope", "buyer-0001", missing_is_forbidden=False)

def test_owner_can_be_embedded():
    assert address_owner({"user": {"id": "u1"}}) == "u1"
    assert address_owner({}) == ""
