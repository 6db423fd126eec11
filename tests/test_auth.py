"""Tests d'inscription, de connexion et de lecture de l'utilisateur de session."""

from backend.core.container import container
from backend.core.http_constants import (
    HTTP_CONFLICT,
    HTTP_CREATED,
    HTTP_OK,
    HTTP_UNAUTHORIZED,
    HTTP_UNPROCESSABLE_ENTITY,
)
from backend.domain.auth import create_access_token, decode_token, hash_password, verify_password

SECRET = "unit-test-secret-key-of-32-bytes"


def test_password_hashing():
    h = hash_password("correct horse")
    assert h != "correct horse"
    assert verify_password("correct horse", h)
    assert not verify_password("wrong", h)
    assert not verify_password("anything", "")


def test_token_roundtrip_and_tampering():
    token = create_access_token(SECRET, "HS256", 5, {"sub": "u1", "email": "u@example.com"})
    data = decode_token(token, SECRET, "HS256")
    assert data is not None and data.sub == "u1"
    assert decode_token(token, "another-secret-key-of-32-bytes!!", "HS256") is None
    assert decode_token("not-a-token", SECRET, "HS256") is None


def test_expired_token_is_rejected():
    token = create_access_token(SECRET, "HS256", -1, {"sub": "u1", "email": "u@example.com"})
    assert decode_token(token, SECRET, "HS256") is None


def test_signup_login_and_current_user(client):
    r = client.post(
        "/auth/signup",
        json={"email": "jy@example.com", "password": "longenough", "firstName": "Jaya"},
    )
    assert r.status_code == HTTP_CREATED
    body = r.json()
    assert body["email"] == "jy@example.com"
    assert body["firstName"] == "Jaya"
    assert "passwordHash" not in body

    r = client.post("/auth/login", json={"email": "jy@example.com", "password": "longenough"})
    assert r.status_code == HTTP_OK
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"

    r = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == HTTP_OK
    assert r.json()["id"] == body["id"]


def test_signup_duplicate_email(client):
    payload = {"email": "dup@example.com", "password": "longenough"}
    assert client.post("/auth/signup", json=payload).status_code == HTTP_CREATED
    r = client.post("/auth/signup", json=payload)
    assert r.status_code == HTTP_CONFLICT
    assert r.json()["code"] == "CONFLICT"
    assert r.json()["message"] == "email_exists"


def test_signup_rejects_short_password(client):
    r = client.post("/auth/signup", json={"email": "s@example.com", "password": "short"})
    assert r.status_code == HTTP_UNPROCESSABLE_ENTITY


def test_login_wrong_password(client):
    client.post("/auth/signup", json={"email": "w@example.com", "password": "longenough"})
    r = client.post("/auth/login", json={"email": "w@example.com", "password": "not-it-at-all"})
    assert r.status_code == HTTP_UNAUTHORIZED
    assert r.json()["message"] == "invalid_credentials"


def test_current_user_token_errors(client):
    assert client.get("/api/auth/user").json()["message"] == "missing_token"
    r = client.get("/api/auth/user", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == HTTP_UNAUTHORIZED
    assert r.json()["message"] == "invalid_token"

    ghost = create_access_token(
        container.settings.JWT_SECRET,
        container.settings.JWT_ALG,
        5,
        {"sub": "ghost", "email": "ghost@example.com"},
    )
    r = client.get("/api/auth/user", headers={"Authorization": f"Bearer {ghost}"})
    assert r.json()["message"] == "user_not_found"
