"""Tests for admin login, session cookies and the session gate."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from acda_site.config import SESSION_COOKIE_NAME, SESSION_SECRET
from acda_site.main import app
from acda_site.session import Principal, create_session_token, decode_session_token

from conftest import ADMIN_PASSWORD, ADMIN_USER


def test_session_token_round_trip():
    token = create_session_token(Principal(id=7, name="admin"))
    assert decode_session_token(token) == Principal(id=7, name="admin")


def test_expired_session_token_rejected():
    issued = datetime.now(timezone.utc) - timedelta(days=31)
    token = create_session_token(Principal(id=1, name="admin"), now=issued)
    assert decode_session_token(token) is None


def test_session_token_signed_with_other_secret_rejected():
    forged = jwt.encode(
        {"iss": "acda-site", "sub": "1", "name": "admin", "exp": 9999999999},
        "not-the-secret",
        algorithm="HS256",
    )
    assert decode_session_token(forged) is None
    assert decode_session_token("") is None
    assert decode_session_token("garbage") is None


def test_session_token_with_bad_subject_rejected():
    token = jwt.encode({"iss": "acda-site", "sub": "abc", "exp": 9999999999}, SESSION_SECRET, algorithm="HS256")
    assert decode_session_token(token) is None


def test_login_sets_session_cookie(admin_client):
    assert admin_client.cookies.get(SESSION_COOKIE_NAME)
    r = admin_client.get("/api/auth/session")
    assert r.status_code == 200
    assert r.json() == {"authenticated": True, "user": {"id": 1, "name": ADMIN_USER}}


def test_login_username_is_case_insensitive(admin_client):
    fresh = TestClient(app)
    r = fresh.post("/api/auth/login", json={"username": "  ADMIN ", "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    assert r.json()["user"]["name"] == ADMIN_USER


def test_login_wrong_password(admin_client):
    fresh = TestClient(app)
    r = fresh.post("/api/auth/login", json={"username": ADMIN_USER, "password": "wrong-password"})
    assert r.status_code == 401
    body = r.json()
    assert body["success"] is False
    assert body["code"] == "UNAUTHORIZED"
    assert body["error"] == "Invalid username or password"
    assert SESSION_COOKIE_NAME not in fresh.cookies


def test_login_unknown_user(client):
    r = client.post("/api/auth/login", json={"username": "nobody", "password": "whatever123"})
    assert r.status_code == 401


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"username": "admin"},
        {"password": "x"},
        ["admin", "pw"],
        {"username": 123, "password": ["pw"]},
        {"username": " ", "password": "pw"},
    ],
)
def test_login_requires_both_fields(client, payload):
    r = client.post("/api/auth/login", json=payload)
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_login_rate_limited(client, monkeypatch):
    import acda_site.config as config_mod

    monkeypatch.setattr(config_mod, "RATE_LIMIT_LOGIN_PER_MINUTE", 2)
    for _ in range(2):
        client.post("/api/auth/login", json={"username": "x", "password": "wrong-password"})
    r = client.post("/api/auth/login", json={"username": "x", "password": "wrong-password"})
    assert r.status_code == 429
    assert r.json()["code"] == "RATE_LIMIT_EXCEEDED"
    assert "Retry-After" in r.headers


def test_logout_clears_session(admin_client):
    r = admin_client.post("/api/auth/logout")
    assert r.status_code == 200
    r = admin_client.get("/api/auth/session")
    assert r.json() == {"authenticated": False, "user": None}


def test_session_status_anonymous(client):
    r = client.get("/api/auth/session")
    assert r.json()["authenticated"] is False


@pytest.mark.parametrize(
    "method,path,kwargs",
    [
        ("post", "/api/events/create", {"data": {"title": "t", "description": "d", "date": "2030-01-01"}}),
        ("delete", "/api/events/delete?id=1", {}),
        ("post", "/api/events/upload", {"json": {"eventName": "x", "year": 2024, "imageUrl": "u", "publicId": "p"}}),
        ("post", "/api/events/photos/upload", {"data": {"eventName": "x", "year": "2024"}}),
        ("post", "/api/admin/create", {"json": {"username": "second", "password": "password123"}}),
    ],
)
def test_mutating_endpoints_require_session(client, db, image_host, method, path, kwargs):
    from acda_site.models import Admin, Event, EventPhoto

    r = getattr(client, method)(path, **kwargs)
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Unauthorized", "code": "UNAUTHORIZED"}
    assert db.query(Event).count() == 0
    assert db.query(EventPhoto).count() == 0
    assert db.query(Admin).count() == 0
    assert image_host.uploads == []


def test_tampered_cookie_is_unauthorized():
    client = TestClient(app, cookies={SESSION_COOKIE_NAME: "not-a-jwt"})
    r = client.post("/api/events/upload", json={})
    assert r.status_code == 401
