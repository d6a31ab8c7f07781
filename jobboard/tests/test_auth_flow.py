from jobboard import crud
from jobboard.config import settings


def register(client, email="user@example.com", password="password123", role="student", full_name="Ada Student"):
    return client.post(
        "/api/register", json={"email": email, "password": password, "role": role, "full_name": full_name}
    )


def login(client, email="user@example.com", password="password123"):
    # FastAPI's OAuth2PasswordRequestForm expects form fields
    return client.post(
        "/api/login",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )


def test_register_then_login_and_me(client):
    r = register(client)
    assert r.status_code == 201, r.text
    profile = r.json()
    assert profile["email"] == "user@example.com"
    assert profile["role"] == "student"
    assert profile["verified"] is False

    # Duplicate register should 409
    assert register(client).status_code == 409

    r3 = login(client)
    assert r3.status_code == 200, r3.text
    token = r3.json()["access_token"]

    r4 = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert r4.status_code == 200, r4.text
    assert r4.json()["id"] == profile["id"]


def test_login_with_wrong_password(client):
    register(client)
    assert login(client, password="not-the-password").status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/me").status_code == 401
    assert client.get("/api/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_admin_role_cannot_be_self_assigned(client):
    r = register(client, role="admin")
    assert r.status_code == 422


def test_bootstrap_admin_email(client, monkeypatch):
    monkeypatch.setattr(settings, "BOOTSTRAP_ADMIN_EMAILS", ["Boss@Example.com"])
    r = register(client, email="boss@example.com", role="employer", full_name="The Boss")
    assert r.status_code == 201
    assert r.json()["role"] == "admin"
    assert r.json()["verified"] is True


def test_concurrent_duplicate_register_is_conflict(client, monkeypatch):
    assert register(client).status_code == 201
    # the other request passed the email check before this one committed
    monkeypatch.setattr(crud, "get_profile_by_email", lambda db, email: None)
    r = register(client, full_name="Ada Twin")
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered"
