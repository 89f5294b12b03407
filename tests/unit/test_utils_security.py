from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from backend.utils.security import (
    get_current_user,
    get_optional_user,
    require_admin,
    COOKIE_NAME,
)


def _make_app():
    app = FastAPI()

    @app.get("/me")
    def me(user=Depends(get_current_user)):
        return user

    @app.get("/maybe")
    def maybe(user=Depends(get_optional_user)):
        return {"user": user}

    @app.get("/admin")
    def admin(user=Depends(require_admin)):
        return {"ok": True}

    return app


def _fake_token_service(monkeypatch, user=None, exc=None):
    seen = []

    def _get_user_from_token(token):
        seen.append(token)
        if exc:
            raise exc
        return user

    monkeypatch.setattr("backend.auth.service.get_user_from_token", _get_user_from_token)
    return seen


def test_bearer_token_has_priority_over_cookie(monkeypatch):
    seen = _fake_token_service(monkeypatch, {"id": "u1", "email": "a@b", "role": "user"})
    client = TestClient(_make_app())
    client.cookies.set(COOKIE_NAME, "cookie-token")

    r = client.get("/me", headers={"Authorization": "Bearer tok-123"})
    assert r.status_code == 200
    assert r.json()["id"] == "u1"
    assert seen == ["tok-123"]


def test_cookie_token_fallback(monkeypatch):
    seen = _fake_token_service(monkeypatch, {"id": "u1", "role": "admin"})
    client = TestClient(_make_app())
    client.cookies.set(COOKIE_NAME, "cookie-token")

    assert client.get("/me").json()["role"] == "admin"
    assert seen == ["cookie-token"]


def test_missing_token_401():
    r = TestClient(_make_app()).get("/me")
    assert r.status_code == 401
    assert "Non authentifié" in r.text


def test_invalid_token_401(monkeypatch):
    _fake_token_service(monkeypatch, exc=RuntimeError("jwt expired"))
    r = TestClient(_make_app()).get("/me", headers={"Authorization": "Bearer tok"})
    assert r.status_code == 401
    assert "Session expirée" in r.text


def test_optional_user_is_none_for_guest_and_bad_token(monkeypatch):
    client = TestClient(_make_app())
    assert client.get("/maybe").json() == {"user": None}

    _fake_token_service(monkeypatch, {"email": "no-id@x"})
    assert client.get("/maybe", headers={"Authorization": "Bearer tok"}).json() == {"user": None}


def test_require_admin(monkeypatch):
    client = TestClient(_make_app())

    _fake_token_service(monkeypatch, {"id": "u1", "role": "user"})
    assert client.get("/admin", headers={"Authorization": "Bearer tok"}).status_code == 403

    _fake_token_service(monkeypatch, {"id": "u1", "role": "admin"})
    assert client.get("/admin", headers={"Authorization": "Bearer tok"}).json() == {"ok": True}
