"""
Accès aux données pour la feature 'orders' (table seller_orders + RPC de stock).

Schéma attendu côté base:
- seller_orders.checkout_id et seller_orders.gateway_payment_id indexés
- index unique (gateway_payment_id, seller_id): une confirmation de paiement ne
  peut produire qu'une commande par vendeur
- reserve_stock(p_product_id, p_variant_id, p_quantity) -> bool:
  décrément conditionnel (stock = stock - qty WHERE stock >= qty)
- release_stock(p_product_id, p_variant_id, p_quantity) -> bool
"""
from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import marketplace.infra.supabase_client as supabase_client
from marketplace.config import ORDERS_TABLE
from marketplace.checkout.errors import DuplicateOrderError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

# module marketplace.orders.repository
def create_order(doc: Dict[str, Any]) -> Optional[dict]:
    """
    Insère une commande vendeur via service-role et retourne la ligne créée (avec id).
    - Violation d'unicité (paiement déjà matérialisé pour ce vendeur): DuplicateOrderError.
    - Autre erreur: journalisée, retourne None.
    """
    try:
        res = supabase_client.get_service_supabase().table(ORDERS_TABLE).insert(doc).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except APIError as e:
        if str(getattr(e, "code", "")) == UNIQUE_VIOLATION:
            raise DuplicateOrderError(doc.get("gateway_payment_id"), doc.get("seller_id")) from e
        logger.exception("orders.repository.create_order failed checkout_id=%s seller_id=%s", doc.get("checkout_id"), doc.get("seller_id"))
        return None
    except Exception:
        logger.exception("orders.repository.create_order failed checkout_id=%s seller_id=%s", doc.get("checkout_id"), doc.get("seller_id"))
        return None

def delete_order(order_id: str) -> bool:
    """Supprime une commande par id (compensation). Retourne True si la requête a abouti."""
    try:
        supabase_client.get_service_supabase().table(ORDERS_TABLE).delete().eq("id", str(order_id)).execute()
        return True
    except Exception:
        logger.exception("orders.repository.delete_order failed order_id=%s", order_id)
        return False

def find_orders_by_gateway_payment_id(gateway_payment_id: str) -> List[dict]:
    """
    Commandes déjà créées pour un paiement (contrôle d'idempotence).
    Les erreurs remontent: conclure "aucune commande" sur une panne recréerait des commandes.
    """
    res = (
        supabase_client.get_service_supabase()
        .table(ORDERS_TABLE)
        .select("id, checkout_id, user_id, seller_id, total, created_at")
        .eq("gateway_payment_id", gateway_payment_id)
        .order("created_at", desc=False)
        .execute()
    )
    return res.data or []

def find_orders_by_checkout_id(checkout_id: str) -> List[dict]:
    """Commandes d'une tentative de checkout (réconciliation/support). [] en cas d'erreur."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("*")
            .eq("checkout_id", checkout_id)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.find_orders_by_checkout_id failed checkout_id=%s", checkout_id)
        return []

def _stock_rpc(fn: str, product_id: str, variant_id: Optional[str], quantity: int) -> bool:
    res = (
        supabase_client.get_service_supabase()
        .rpc(fn, {"p_product_id": product_id, "p_variant_id": variant_id, "p_quantity": quantity})
        .execute()
    )
    data = res.data
    if isinstance(data, list):
        data = data[0] if data else False
    return bool(data)

def reserve_stock(product_id: str, variant_id: Optional[str], quantity: int) -> bool:
    """Décrément atomique conditionnel; False si le stock restant est insuffisant."""
    return _stock_rpc("reserve_stock", product_id, variant_id, quantity)

def release_stock(product_id: str, variant_id: Optional[str], quantity: int) -> bool:
    """Restitue une réservation (compensation). Retourne False en cas d'erreur."""
    try:
        return _stock_rpc("release_stock", product_id, variant_id, quantity)
    except Exception:
        logger.exception("orders.repository.release_stock failed product_id=%s variant_id=%s", product_id, variant_id)
        return False
