"""
Valorisation du panier (collaborateur externe du checkout).

Contrat: valuate_cart(lines, discount_code=None) -> CalculationResult
- prix unitaires, stock et vendeur lus côté serveur (jamais depuis le client)
- subtotal == somme(price * quantity) des lignes valorisées
- is_stock_problem=True dès qu'une ligne (ou le code promo) est invalide

Règles par défaut (volontairement simples):
- livraison offerte au-delà de FREE_SHIPPING_THRESHOLD, sinon FLAT_SHIPPING_FEE
- taxe à 0 (incluse dans le prix produit)
- frais plateforme fixes PLATFORM_FEE
- les règles des codes promo sont évaluées par la base (RPC resolve_discount)
"""
from typing import Any, Dict, List, Optional
import logging

from marketplace import config
from marketplace.cart import repository
from marketplace.cart.models import CalculationResult, CartLineInput, ValuedLine

logger = logging.getLogger(__name__)

def _is_available(product: Optional[Dict[str, Any]]) -> bool:
    return bool(product) and product.get("status") == "live" and bool(product.get("is_active"))

def _find_variant(product: Dict[str, Any], variant_id: str) -> Optional[Dict[str, Any]]:
    for v in product.get("variants") or []:
        if str(v.get("id")) == str(variant_id):
            return v
    return None

def _seller_of(product: Dict[str, Any]) -> Optional[str]:
    seller = product.get("seller_id") or product.get("seller")
    if isinstance(seller, dict):
        seller = seller.get("id")
    return str(seller) if seller else None

def _shipping_for(subtotal: float) -> float:
    return 0 if subtotal > config.FREE_SHIPPING_THRESHOLD else config.FLAT_SHIPPING_FEE

def _apply_discount(result: CalculationResult, code: str) -> None:
    seller_subtotals: Dict[str, float] = {}
    for item in result.items:
        if item.seller_id:
            seller_subtotals[item.seller_id] = seller_subtotals.get(item.seller_id, 0) + item.subtotal

    try:
        discount = repository.resolve_discount(code.strip().upper(), result.subtotal, seller_subtotals)
    except Exception:
        logger.exception("cart.valuator discount validation failed code=%s", code)
        result.stock_errors.append("Failed to validate discount code")
        result.is_stock_problem = True
        return

    if not discount:
        result.stock_errors.append("Invalid discount code")
        result.is_stock_problem = True
        return
    if discount.get("error"):
        result.stock_errors.append(str(discount["error"]))
        result.is_stock_problem = True
        return

    result.discount_code = discount.get("code") or code.strip().upper()
    result.discount_source = discount.get("source") or "store"
    seller_id = discount.get("seller_id")
    # même forme que ValuedLine.seller_id (ids numériques côté base)
    result.discount_seller_id = str(seller_id) if seller_id not in (None, "") else None
    result.discount_amount = round(float(discount.get("amount") or 0), 2)

def valuate_cart(lines: List[CartLineInput], discount_code: Optional[str] = None) -> CalculationResult:
    """
    Valorise les lignes du panier à partir des produits en base.
    - Produit absent/inactif, variante introuvable, stock insuffisant => stock_errors + is_stock_problem.
    - Les lignes en stock insuffisant restent dans items (affichage), mais bloquent toute commande.
    """
    products = repository.get_products_map(line.product_id for line in lines)
    result = CalculationResult()

    for line in lines:
        product = products.get(str(line.product_id))
        if not _is_available(product):
            result.stock_errors.append(f"Product not available: {line.product_id}")
            result.is_stock_problem = True
            continue

        price = float(product.get("base_price") or 0)
        stock = int(product.get("stock") or 0)
        image = product.get("image_url") or None
        name = product.get("name") or "Item"
        variant = None

        if line.variant_id:
            variant = _find_variant(product, line.variant_id)
            if not variant:
                result.stock_errors.append(f"Variant not found for: {name}")
                result.is_stock_problem = True
                continue
            price = float(variant.get("price") or 0)
            stock = int(variant.get("stock") or 0)
            image = variant.get("image_url") or image

        if stock < line.quantity:
            variant_info = f" ({variant.get('name')})" if variant and variant.get("name") else ""
            result.stock_errors.append(f"{name}{variant_info}: Requested {line.quantity}, Available {stock}")
            result.is_stock_problem = True

        item = ValuedLine(
            product_id=str(line.product_id),
            variant_id=line.variant_id,
            name=name,
            image=image,
            price=price,
            quantity=line.quantity,
            seller_id=_seller_of(product),
            stock=stock,
        )
        result.items.append(item)
        result.subtotal += item.subtotal

    result.shipping = _shipping_for(result.subtotal)
    result.tax = 0
    result.platform_fee = config.PLATFORM_FEE

    if discount_code and discount_code.strip():
        _apply_discount(result, discount_code)

    result.total = result.subtotal + result.shipping + result.tax + result.platform_fee - result.discount_amount
    return result
