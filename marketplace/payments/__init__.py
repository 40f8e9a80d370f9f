"""
Module 'payments' (feature-first): point d'entrée public.
Réunit client passerelle, signature, intention de paiement et finalisation.
"""

from .gateway_client import create_order, fetch_order, to_minor_units
from .signature import expected_signature, verify_signature
from .intent import create_payment_intent
from .finalizer import FinalizeState, finalize_payment

__all__ = [
    # passerelle
    "create_order",
    "fetch_order",
    "to_minor_units",
    # signature
    "expected_signature",
    "verify_signature",
    # cas d'usage
    "create_payment_intent",
    "finalize_payment",
    "FinalizeState",
]
