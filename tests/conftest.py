import os

# Avant tout import de l'app: pas d'init Redis pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import itertools
import pytest
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from marketplace.app import app as fastapi_app
from marketplace.checkout.errors import DuplicateOrderError
from marketplace.utils.security import require_user

GATEWAY_SECRET = "test_gateway_secret"
BUYER_ID = "buyer-0001"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeOrderStore:
    """
    Store de commandes en mémoire (table seller_orders + RPC de stock).
    - index unique (gateway_payment_id, seller_id) comme en base
    - fail_on_seller: création refusée (None) pour ce vendeur
    - stock: {(product_id, variant_id): quantité}; absent = stock illimité
    """

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self.stock: Dict[tuple, int] = {}
        self.fail_on_seller: Optional[str] = None
        self.fail_delete = False
        self._ids = itertools.count(1)

    def create_order(self, doc: Dict[str, Any]) -> Optional[dict]:
        if self.fail_on_seller and doc.get("seller_id") == self.fail_on_seller:
            return None
        payment_id = doc.get("gateway_payment_id")
        if payment_id and any(
            r["gateway_payment_id"] == payment_id and r["seller_id"] == doc.get("seller_id") for r in self.rows
        ):
            raise DuplicateOrderError(payment_id, doc.get("seller_id"))
        row = dict(doc, id=f"order-{next(self._ids)}", created_at=len(self.rows))
        self.rows.append(row)
        return row

    def delete_order(self, order_id: str) -> bool:
        if self.fail_delete:
            return False
        self.rows = [r for r in self.rows if r["id"] != order_id]
        self.deleted.append(order_id)
        return True

    def find_orders_by_gateway_payment_id(self, value: str) -> List[dict]:
        return [r for r in self.rows if r.get("gateway_payment_id") == value]

    def find_orders_by_checkout_id(self, value: str) -> List[dict]:
        return [r for r in self.rows if r.get("checkout_id") == value]

    def reserve_stock(self, product_id: str, variant_id: Optional[str], quantity: int) -> bool:
        key = (product_id, variant_id)
        if key not in self.stock:
            return True
        if self.stock[key] < quantity:
            return False
        self.stock[key] -= quantity
        return True

    def release_stock(self, product_id: str, variant_id: Optional[str], quantity: int) -> bool:
        key = (product_id, variant_id)
        if key in self.stock:
            self.stock[key] += quantity
        return True


CATALOG: Dict[str, Dict[str, Any]] = {
    "P-A": {"id": "P-A", "name": "Tea Pot", "base_price": 100, "stock": 10, "status": "live",
            "is_active": True, "seller_id": "S1", "image_url": "a.png", "variants": []},
    "P-B": {"id": "P-B", "name": "Mug", "base_price": 125, "stock": 10, "status": "live",
            "is_active": True, "seller_id": "S2", "image_url": None, "variants": []},
    "P-C": {"id": "P-C", "name": "Shirt", "base_price": 300, "stock": 0, "status": "live",
            "is_active": True, "seller_id": "S1", "image_url": "c.png",
            "variants": [{"id": "V-M", "name": "M", "price": 350, "stock": 2}]},
    "P-D": {"id": "P-D", "name": "Retired", "base_price": 50, "stock": 10, "status": "draft",
            "is_active": True, "seller_id": "S3", "variants": []},
}

ADDRESSES: Dict[str, Dict[str, Any]] = {
    "addr-1": {"id": "addr-1", "user_id": BUYER_ID, "email": "buyer@example.com", "phone": "+910000000001"},
    "addr-other": {"id": "addr-other", "user_id": "someone-else", "email": "x@example.com", "phone": None},
}


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Simuler un acheteur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    fake_user: Dict[str, Any] = {"id": BUYER_ID, "email": "buyer@example.com", "token": "fake-token"}
    app.dependency_overrides[require_user] = lambda: fake_user
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

# Aucun accès Supabase réel pendant les tests
@pytest.fixture(autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("marketplace.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("marketplace.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("marketplace.config.GATEWAY_KEY_ID", "rzp_test_key")
    monkeypatch.setattr("marketplace.config.GATEWAY_KEY_SECRET", GATEWAY_SECRET)
    monkeypatch.setattr("marketplace.config.FEE_ALLOCATION_MODE", "independent")
    monkeypatch.setattr("marketplace.config.STOCK_RESERVATION_ENABLED", True)

@pytest.fixture()
def order_store(monkeypatch) -> FakeOrderStore:
    store = FakeOrderStore()
    for name in (
        "create_order",
        "delete_order",
        "find_orders_by_gateway_payment_id",
        "find_orders_by_checkout_id",
        "reserve_stock",
        "release_stock",
    ):
        monkeypatch.setattr(f"marketplace.orders.repository.{name}", getattr(store, name))
    return store

@pytest.fixture()
def catalog(monkeypatch) -> Dict[str, Dict[str, Any]]:
    products = {k: dict(v) for k, v in CATALOG.items()}

    def _fetch(ids):
        return [products[i] for i in ids if i in products]

    monkeypatch.setattr("marketplace.cart.repository.fetch_products_by_ids", _fetch)
    monkeypatch.setattr("marketplace.cart.repository.resolve_discount", lambda code, subtotal, seller_subtotals: None)
    monkeypatch.setattr("marketplace.cart.repository.increment_discount_usage", MagicMock(return_value=True))
    return products

@pytest.fixture()
def addresses(monkeypatch) -> Dict[str, Dict[str, Any]]:
    rows = {k: dict(v) for k, v in ADDRESSES.items()}
    monkeypatch.setattr("marketplace.addresses.repository.find_address_by_id", lambda address_id: rows.get(address_id))
    return rows
