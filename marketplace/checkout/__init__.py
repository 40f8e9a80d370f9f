"""
Module 'checkout' (feature-first): orchestration du checkout multi-vendeurs.
- errors: taxonomie des erreurs
- context: contexte immuable d'une tentative
- partitioner: découpage par vendeur et allocation des frais
- saga: actions engagées + compensations
- direct: chemin paiement à la livraison
- service: aperçu des totaux
- views: endpoints HTTP
"""
