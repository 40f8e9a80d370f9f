import types
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from marketplace.utils.security import get_current_user, COOKIE_NAME

def _make_app():
    app = FastAPI()

    @app.get("/me")
    def me(user=Depends(get_current_user)):
        return user

    return app

def _patch_auth(monkeypatch, user=None, error=None):
    auth = MagicMock()
    if error is not None:
        auth.get_user.side_effect = error
    else:
        auth.get_user.return_value = types.SimpleNamespace(user=user)
    monkeypatch.setattr("marketplace.infra.supabase_client.get_supabase", lambda: MagicMock(auth=auth))
    return auth

def test_bearer_token_is_resolved(monkeypatch):
    auth = _patch_auth(monkeypatch, user=types.SimpleNamespace(id="buyer-1", email="b@example.com"))
    r = TestClient(_make_app()).get("/me", headers={"Authorization": "Bearer tok"})
    assert r.status_code == 200
    assert r.json() == {"id": "buyer-1", "email": "b@example.com", "token": "tok"}
    auth.get_user.assert_called_once_with("tok")

def test_cookie_fallback(monkeypatch):
    _patch_auth(monkeypatch, user=types.SimpleNamespace(id="buyer-1", email=None))
    client = TestClient(_make_app())
    client.cookies.set(COOKIE_NAME, "cookie-tok")
    assert client.get("/me").json()["token"] == "cookie-tok"

def test_missing_token_is_unauthorized():
    r = TestClient(_make_app()).get("/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Unauthorized"

def test_rejected_token_is_unauthorized(monkeypatch):
    _patch_auth(monkeypatch, error=RuntimeError("invalid JWT"))
    r = TestClient(_make_app()).get("/me", headers={"Authorization": "Bearer bad"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Session expired, please sign in again"
