import pytest

from marketplace.cart.models import CartLineInput
from marketplace.cart.valuator import valuate_cart

def test_prices_and_sellers_come_from_catalog(catalog):
    result = valuate_cart([CartLineInput(product_id="P-A", quantity=2), CartLineInput(product_id="P-B", quantity=1)])
    assert result.is_stock_problem is False
    assert [(i.product_id, i.price, i.seller_id) for i in result.items] == [("P-A", 100, "S1"), ("P-B", 125, "S2")]
    assert result.subtotal == 325
    assert result.subtotal == sum(i.price * i.quantity for i in result.items)

def test_default_rules_below_free_shipping_threshold(catalog):
    result = valuate_cart([CartLineInput(product_id="P-A", quantity=1)])
    assert result.shipping == 40
    assert result.tax == 0
    assert result.platform_fee == 15
    assert result.total == 155

def test_free_shipping_above_threshold(catalog):
    result = valuate_cart([CartLineInput(product_id="P-A", quantity=5)])
    assert result.shipping == 0
    assert result.total == 515

def test_variant_price_and_stock(catalog):
    result = valuate_cart([CartLineInput(product_id="P-C", variant_id="V-M", quantity=2)])
    item = result.items[0]
    assert (item.price, item.stock, item.variant_id) == (350, 2, "V-M")
    assert result.is_stock_problem is False

def test_insufficient_stock_is_flagged(catalog):
    result = valuate_cart([CartLineInput(product_id="P-C", variant_id="V-M", quantity=3)])
    assert result.is_stock_problem is True
    assert result.stock_errors == ["Shirt (M): Requested 3, Available 2"]

def test_unknown_variant_and_unavailable_product(catalog):
    result = valuate_cart([
        CartLineInput(product_id="P-C", variant_id="V-XL", quantity=1),
        CartLineInput(product_id="P-D", quantity=1),
        CartLineInput(product_id="missing", quantity=1),
    ])
    assert result.is_stock_problem is True
    assert result.stock_errors == [
        "Variant not found for: Shirt",
        "Product not available: P-D",
        "Product not available: missing",
    ]
    assert result.items == []

def test_empty_variant_id_means_base_product():
    assert CartLineInput(product_id="P-A", variant_id="", quantity=1).variant_id is None

def test_quantity_must_be_positive():
    with pytest.raises(ValueError):
        CartLineInput(product_id="P-A", quantity=0)

def test_store_discount_is_applied(catalog, monkeypatch):
    seen = {}

    def _resolve(code, subtotal, seller_subtotals):
        seen.update(code=code, subtotal=subtotal, sellers=seller_subtotals)
        return {"code": code, "amount": 20, "source": "store", "seller_id": None}

    monkeypatch.setattr("marketplace.cart.repository.resolve_discount", _resolve)
    result = valuate_cart([CartLineInput(product_id="P-A", quantity=1), CartLineInput(product_id="P-B", quantity=1)], " save20 ")
    assert seen == {"code": "SAVE20", "subtotal": 225, "sellers": {"S1": 100, "S2": 125}}
    assert result.discount_code == "SAVE20"
    assert result.discount_amount == 20
    assert result.total == 225 + 40 + 15 - 20

def test_invalid_discount_code_blocks_checkout(catalog):
    result = valuate_cart([CartLineInput(product_id="P-A", quantity=1)], "NOPE")
    assert result.is_stock_problem is True
    assert result.stock_errors == ["Invalid discount code"]

def test_discount_rejected_by_rules(catalog, monkeypatch):
    monkeypatch.setattr(
        "marketplace.cart.repository.resolve_discount",
        lambda code, subtotal, seller_subtotals: {"error": "Minimum order amount is 500"},
    )
    result = valuate_cart([CartLineInput(product_id="P-A", quantity=1)], "BIG")
    assert result.stock_errors == ["Minimum order amount is 500"]

def test_discount_lookup_failure_is_reported(catalog, monkeypatch):
    def _boom(code, subtotal, seller_subtotals):
        raise RuntimeError("rpc down")

    monkeypatch.setattr("marketplace.cart.repository.resolve_discount", _boom)
    result = valuate_cart([CartLineInput(product_id="P-A", quantity=1)], "SAVE")
    assert result.is_stock_problem is True
    assert result.stock_errors == ["Failed to validate discount code"]

def test_numeric_discount_seller_id_is_normalised(catalog, monkeypatch):
    catalog["P-A"]["seller_id"] = 7
    monkeypatch.setattr(
        "marketplace.cart.repository.resolve_discount",
        lambda code, subtotal, seller_subtotals: {"code": code, "amount": 20, "source": "seller", "seller_id": 7},
    )
    result = valuate_cart([CartLineInput(product_id="P-A", quantity=1)], "SELLER7")
    assert result.items[0].seller_id == "7"
    assert result.discount_seller_id == "7"
