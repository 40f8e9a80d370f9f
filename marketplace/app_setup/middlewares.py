"""
Middlewares transverses de l'API.
- CORSMiddleware: origines autorisées (front marketplace, dev/prod).
- TrustedHostMiddleware: limite les hôtes acceptés (défense host header).
- ProxyHeadersMiddleware (uvicorn): fait confiance aux en-têtes X-Forwarded-*.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from marketplace.config import CORS_ORIGINS, ALLOWED_HOSTS

def register_basic_middlewares(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=ALLOWED_HOSTS + ["*"] if "*" in CORS_ORIGINS else ALLOWED_HOSTS,
    )
    # Render, Nginx, etc.
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])
