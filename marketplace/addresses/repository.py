"""
Accès aux adresses de livraison (lecture seule: le CRUD des adresses est hors du checkout).
"""
from typing import Optional
import logging

import marketplace.infra.supabase_client as supabase_client
from marketplace.config import ADDRESSES_TABLE

logger = logging.getLogger(__name__)

def find_address_by_id(address_id: str) -> Optional[dict]:
    """
    Retourne l'adresse (id, user_id, email, phone, ...) ou None si introuvable.
    Lecture via le client service: la propriété est vérifiée par l'appelant.
    """
    if not address_id:
        return None
    res = (
        supabase_client.get_service_supabase()
        .table(ADDRESSES_TABLE)
        .select("*")
        .eq("id", str(address_id))
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None
