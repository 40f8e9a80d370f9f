from fastapi import Request, HTTPException, Depends
from typing import Dict, Any
import logging

import marketplace.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise l'utilisateur issu de supabase.auth.get_user(access_token): {id, email, token}."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None)
    return {
        "id": getattr(user, "id", None),
        "email": getattr(user, "email", None),
        "token": access_token,
    }

def get_current_user(request: Request) -> Dict[str, Any]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)

    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        user = get_user_from_token(token)
        if not user.get("id"):
            raise HTTPException(status_code=401, detail="Session expired, please sign in again")
        return user
    except HTTPException:
        raise
    except Exception:
        logger.warning("security.get_current_user token rejected", exc_info=True)
        raise HTTPException(status_code=401, detail="Session expired, please sign in again")

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
