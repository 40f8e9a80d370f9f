"""
Module 'cart' (feature-first): modèle du panier et valorisation serveur.
"""

from .models import CartLineInput, ValuedLine, CalculationResult
from .valuator import valuate_cart

__all__ = [
    "CartLineInput",
    "ValuedLine",
    "CalculationResult",
    "valuate_cart",
]
