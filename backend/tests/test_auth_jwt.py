from quicknotes.utils.jwt_auth import create_access_token, decode_token

from conftest import make_settings

CREDS = {"username": "alice", "password": "StrongPassw0rd!"}


def _token(client) -> str:
    r = client.post("/auth/signup", json=CREDS)
    assert r.status_code == 201
    r = client.post("/auth/login", json=CREDS)
    assert r.status_code == 200
    return r.json()["access_token"]


def test_signup_login_token_returned(strict_client):
    r = strict_client.post("/auth/signup", json=CREDS)
    assert r.status_code == 201
    user_id = r.json()["user_id"]

    r = strict_client.post("/auth/login", json=CREDS)
    assert r.status_code == 200
    data = r.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user_id"] == user_id


def test_duplicate_signup_conflicts(strict_client):
    assert strict_client.post("/auth/signup", json=CREDS).status_code == 201
    assert strict_client.post("/auth/signup", json=CREDS).status_code == 409


def test_login_wrong_password(strict_client):
    strict_client.post("/auth/signup", json=CREDS)
    r = strict_client.post("/auth/login", json={"username": "alice", "password": "wrongwrongwrong"})
    assert r.status_code == 401
    r = strict_client.post("/auth/login", json={"username": "nobody", "password": "whatever1"})
    assert r.status_code == 401


def test_protected_requires_token(strict_client):
    # no auth at all
    assert strict_client.get("/notes").status_code == 401

    # header identity is ignored unless trust_user_header is on
    assert strict_client.get("/notes", headers={"X-User-Id": "userA"}).status_code == 401

    token = _token(strict_client)
    r = strict_client.get("/notes", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["total"] == 0


def test_invalid_token_rejected(strict_client):
    r = strict_client.get("/notes", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 401


def test_notes_are_scoped_to_token_subject(strict_client):
    token = _token(strict_client)
    headers = {"Authorization": f"Bearer {token}"}
    created = strict_client.post("/notes", headers=headers, json={"title": "mine"}).json()
    me = strict_client.post("/auth/login", json=CREDS).json()["user_id"]
    assert created["owner_user_id"] == me


def test_token_round_trip(tmp_path):
    settings = make_settings(tmp_path)
    payload = decode_token(settings, create_access_token(settings, "user-1"))
    assert payload["sub"] == "user-1"
    assert payload["exp"] > payload["iat"]


def test_me_returns_identity_from_token(strict_client):
    token = _token(strict_client)
    r = strict_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    me = r.json()
    assert me["username"] == "alice"
    assert me["user_id"] == strict_client.post("/auth/login", json=CREDS).json()["user_id"]

    assert strict_client.get("/auth/me").status_code == 401


def test_me_with_trusted_header_has_no_username(client):
    r = client.get("/auth/me", headers={"X-User-Id": "userA"})
    assert r.status_code == 200
    assert r.json() == {"user_id": "userA", "username": None}
