import pytest
from fastapi import FastAPI, Depends, Request
from fastapi.testclient import TestClient
from marketplace.utils.rate_limit import _local_hit, optional_rate_limit, rate_limit_health_info


def _make_app(times=2, seconds=60):
    app = FastAPI()

    @app.post("/direct", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def direct():
        return {"ok": True}

    @app.post("/intent", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def intent():
        return {"ok": True}

    @app.get("/rl_info")
    def rl_info(request: Request):
        return rate_limit_health_info(request)

    return app


def test_rate_limit_fallback_blocks_after_limit(monkeypatch):
    client = TestClient(_make_app(times=2, seconds=60))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    codes = [client.post("/direct").status_code for _ in range(3)]

    assert codes == [200, 200, 429]


def test_rate_limit_message(monkeypatch):
    client = TestClient(_make_app(times=1, seconds=60))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client.post("/direct")
    r = client.post("/direct")
    assert r.json()["detail"] == "Too many checkout attempts, please wait"


def test_rate_limit_is_per_path_and_buyer(monkeypatch):
    client = TestClient(_make_app(times=1, seconds=60))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.post("/direct", headers={"Authorization": "Bearer token-a"}).status_code == 200
    assert client.post("/direct", headers={"Authorization": "Bearer token-a"}).status_code == 429
    # autre chemin, autre acheteur: compteurs séparés
    assert client.post("/intent", headers={"Authorization": "Bearer token-a"}).status_code == 200
    assert client.post("/direct", headers={"Authorization": "Bearer token-b"}).status_code == 200


def test_disabled_flag_lets_requests_through(monkeypatch):
    app = _make_app(times=1, seconds=60)
    app.state.rate_limit_enabled = False
    client = TestClient(app)
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)

    assert [client.post("/direct").status_code for _ in range(3)] == [200, 200, 200]


def test_health_info_reports_state(monkeypatch):
    app = _make_app()
    app.state.rate_limit_enabled = False
    monkeypatch.setattr("marketplace.utils.rate_limit.FastAPILimiter.redis", None, raising=False)
    info = TestClient(app).get("/rl_info").json()
    assert info == {"enabled": False, "ready": False, "backend": None}


def test_local_store_prunes_expired_keys():
    store = {}
    assert _local_hit(store, "buyer:a:/direct", now=0, times=1, seconds=60) is True
    assert _local_hit(store, "buyer:a:/direct", now=30, times=1, seconds=60) is False
    assert _local_hit(store, "buyer:b:/direct", now=30, times=1, seconds=60) is True

    # fenêtre expirée pour "a": la clé disparaît au passage suivant
    assert _local_hit(store, "buyer:c:/intent", now=61, times=1, seconds=60) is True
    assert set(store) == {"buyer:b:/direct", "buyer:c:/intent"}
    assert _local_hit(store, "buyer:c:/intent", now=200, times=1, seconds=60) is True
    assert set(store) == {"buyer:c:/intent"}
