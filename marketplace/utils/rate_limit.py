from typing import Any, Dict, List
from urllib.parse import urlparse
from fastapi import Request, Response, HTTPException
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
import hashlib
import os
import time

from marketplace.utils.security import COOKIE_NAME

def _buyer_key(req: Request) -> str:
    """
    Clé de limitation: jeton acheteur (hashé) si présent, sinon IP.
    La clé inclut le chemin pour isoler /direct, /intent et /finalize.
    """
    path = req.url.path
    auth_header = req.headers.get("Authorization", "")
    token = auth_header[7:].strip() if auth_header.startswith("Bearer ") else req.cookies.get(COOKIE_NAME)
    if token:
        h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"buyer:{h}:{path}"
    ip = req.client.host if req.client else "local"
    return f"ip:{ip}:{path}"

def _local_hit(store: Dict[str, List[float]], key: str, now: float, times: int, seconds: int) -> bool:
    """
    Enregistre un appel dans le store mémoire; False si la limite est atteinte.
    Les clés dont toutes les entrées ont expiré sont supprimées.
    """
    for k in list(store):
        fresh = [t for t in store[k] if now - t < seconds]
        if fresh:
            store[k] = fresh
        else:
            del store[k]
    hits = store.get(key, [])
    if len(hits) >= times:
        return False
    store[key] = hits + [now]
    return True

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        # Fallback mémoire (dev/tests) si demandé; un store par fenêtre
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            stores = getattr(request.app.state, "_rl_store", None)
            if stores is None:
                stores = request.app.state._rl_store = {}
            store = stores.setdefault(seconds, {})
            if not _local_hit(store, _buyer_key(request), time.time(), times, seconds):
                raise HTTPException(status_code=429, detail="Too many checkout attempts, please wait")
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        async def _identifier(req: Request) -> str:
            return _buyer_key(req)

        try:
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception:
            # Redis indisponible: pas de 429 en prod, LOCAL_RATE_LIMIT_FALLBACK=1 en dev
            return
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": "redis" if limiter_ready else None,
    }

    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if limiter_ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
