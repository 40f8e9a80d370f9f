"""
Module 'orders' (feature-first): commandes vendeur.
- models: lignes, parts vendeur, document persisté
- repository: table seller_orders et RPC de stock
- materializer: création ordonnée des commandes d'une tentative
"""
