"""
Accès aux données pour la valorisation du panier (table products, RPC remises).
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

import marketplace.infra.supabase_client as supabase_client
from marketplace.config import PRODUCTS_TABLE

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, base_price, stock, status, is_active, seller_id, image_url, variants"

# module marketplace.cart.repository
def fetch_products_by_ids(ids: List[str]) -> List[dict]:
    """
    Récupère les produits par leurs IDs (table 'products'), variantes incluses.
    - Retourne [] si ids vide.
    - Les erreurs remontent: une panne ne doit pas être confondue avec une rupture de stock.
    """
    if not ids:
        return []
    res = (
        supabase_client.get_supabase()
        .table(PRODUCTS_TABLE)
        .select(PRODUCT_COLUMNS)
        .in_("id", [str(i) for i in ids])
        .execute()
    )
    return res.data or []

def get_products_map(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """Retourne un dict {id: produit} à partir d'une liste d'IDs (doublons ignorés)."""
    unique_ids = list(dict.fromkeys(str(i) for i in ids))
    products = fetch_products_by_ids(unique_ids)
    return {str(p.get("id")): p for p in products}

def resolve_discount(code: str, subtotal: float, seller_subtotals: Dict[str, float]) -> Optional[dict]:
    """
    Délègue l'évaluation d'un code promo à la base (RPC resolve_discount).
    Retour: {code, amount, source, seller_id, error?} ou None si le code est inconnu.
    """
    res = (
        supabase_client.get_supabase()
        .rpc("resolve_discount", {
            "p_code": code,
            "p_subtotal": subtotal,
            "p_seller_subtotals": seller_subtotals,
        })
        .execute()
    )
    data = res.data
    if isinstance(data, list):
        return data[0] if data else None
    return data or None

def increment_discount_usage(code: str) -> bool:
    """Incrémente le compteur d'utilisation d'un code promo (best-effort, jamais bloquant)."""
    try:
        supabase_client.get_service_supabase().rpc("increment_discount_usage", {"p_code": code}).execute()
        return True
    except Exception:
        logger.exception("cart.repository.increment_discount_usage failed code=%s", code)
        return False
