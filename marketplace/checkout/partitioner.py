"""
Partitionneur vendeur: logique pure (pas de DB, pas de passerelle).

Découpe un résultat de valorisation en une part par vendeur, dans l'ordre
d'apparition des vendeurs dans le panier, et répartit livraison, taxe, frais
plateforme et remise au prorata du sous-total vendeur:

    part = round(sous_total_vendeur / sous_total_panier * montant_panier)

Arrondi "half-up" à l'unité monétaire, indépendant par vendeur et par composante
(mode "independent"): la somme des totaux vendeur peut s'écarter du total panier
d'au plus (nb vendeurs x nb composantes) unités. Le mode "remainder_last" affecte
le reste de chaque composante au dernier vendeur (conservation exacte).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Union

from marketplace import config
from marketplace.cart.models import CalculationResult
from marketplace.checkout.errors import CartValidationError, StockConflictError
from marketplace.orders.models import OrderLine, SellerShare

ALLOCATION_INDEPENDENT = "independent"
ALLOCATION_REMAINDER_LAST = "remainder_last"

Number = Union[int, float]


def _dec(value: Number) -> Decimal:
    return Decimal(str(value or 0))


def round_half_up(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _as_number(value: Decimal) -> Number:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def to_order_lines(calculation: CalculationResult) -> List[OrderLine]:
    """Fige les lignes valorisées au prix d'achat; toute ligne sans vendeur est fatale."""
    lines: List[OrderLine] = []
    for item in calculation.items:
        if not item.seller_id:
            raise CartValidationError(f"Cart item {item.product_id} has no seller")
        lines.append(OrderLine(
            product_id=item.product_id,
            product_name=item.name,
            product_image=item.image,
            variant_id=item.variant_id,
            price_at_purchase=item.price,
            quantity=item.quantity,
            seller_id=item.seller_id,
        ))
    return lines


def group_by_seller(lines: List[OrderLine]) -> Dict[str, List[OrderLine]]:
    # dict conserve l'ordre d'insertion: ordre de première apparition des vendeurs
    groups: Dict[str, List[OrderLine]] = {}
    for line in lines:
        groups.setdefault(line.seller_id, []).append(line)
    return groups


def _allocate(amount: Decimal, weights: List[Decimal], cart_subtotal: Decimal, mode: str) -> List[Decimal]:
    if cart_subtotal == 0 or amount == 0:
        return [Decimal(0) for _ in weights]
    shares = [round_half_up(w / cart_subtotal * amount) for w in weights]
    if mode == ALLOCATION_REMAINDER_LAST and shares:
        shares[-1] = amount - sum(shares[:-1], Decimal(0))
    return shares


def partition_by_seller(calculation: CalculationResult, mode: Optional[str] = None) -> List[SellerShare]:
    """
    Produit la liste ordonnée des parts vendeur (aucun effet de bord).
    - is_stock_problem=True: StockConflictError, aucune part n'est produite.
    - Ligne sans vendeur: CartValidationError.
    - Remise vendeur: entièrement portée par ce vendeur; remise boutique: au prorata.
    - Remise vendeur dont le vendeur est absent de la partition: CartValidationError.
    """
    if calculation.is_stock_problem:
        raise StockConflictError(
            "Stock issues: " + ", ".join(calculation.stock_errors),
            stock_errors=calculation.stock_errors,
        )
    mode = mode or config.FEE_ALLOCATION_MODE

    groups = group_by_seller(to_order_lines(calculation))
    if not groups:
        raise CartValidationError("Cart is empty")

    seller_ids = list(groups.keys())
    subtotals = [
        sum((_dec(line.price_at_purchase) * line.quantity for line in groups[sid]), Decimal(0))
        for sid in seller_ids
    ]
    cart_subtotal = _dec(calculation.subtotal)

    shipping = _allocate(_dec(calculation.shipping), subtotals, cart_subtotal, mode)
    tax = _allocate(_dec(calculation.tax), subtotals, cart_subtotal, mode)
    fees = _allocate(_dec(calculation.platform_fee), subtotals, cart_subtotal, mode)

    discount_amount = _dec(calculation.discount_amount)
    if discount_amount > 0 and calculation.discount_source == "seller":
        discount_seller = str(calculation.discount_seller_id or "")
        if discount_seller not in groups:
            raise CartValidationError(f"Discount code {calculation.discount_code} does not apply to this cart")
        discounts = [discount_amount if sid == discount_seller else Decimal(0) for sid in seller_ids]
    else:
        discounts = _allocate(discount_amount, subtotals, cart_subtotal, mode)

    shares: List[SellerShare] = []
    for i, sid in enumerate(seller_ids):
        total = subtotals[i] + shipping[i] + tax[i] + fees[i] - discounts[i]
        shares.append(SellerShare(
            seller_id=sid,
            items=groups[sid],
            subtotal=_as_number(subtotals[i]),
            shipping=_as_number(shipping[i]),
            tax=_as_number(tax[i]),
            platform_fee=_as_number(fees[i]),
            discount=_as_number(discounts[i]),
            total=_as_number(total),
        ))
    return shares
