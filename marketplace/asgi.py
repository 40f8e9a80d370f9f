"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: uvicorn workers, hypercorn) importe `marketplace.asgi:app`.
- Toute la configuration FastAPI est centralisée dans marketplace.app_setup.factory.
"""

from marketplace.app import app
