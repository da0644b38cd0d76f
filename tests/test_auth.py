from app.core.security import get_password_hash
from tests.factories import auth_headers


def test_login_returns_token_for_valid_credentials(client, db, admin_a):
    admin_a.hashed_password = get_password_hash("secret123")
    db.commit()

    response = client.post("/api/v1/auth/login", data={"username": "admin@a.example", "password": "secret123"})
    wrong = client.post("/api/v1/auth/login", data={"username": "admin@a.example", "password": "nope"})

    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"
    assert wrong.status_code == 401
    assert wrong.json() == {"success": False, "error": "Incorrect email or password"}


def test_me_includes_store(client, admin_a):
    response = client.get("/api/v1/auth/me", headers=auth_headers(admin_a))

    data = response.json()["data"]
    assert data["email"] == "admin@a.example"
    assert data["role_name"] == "Admin"
    assert data["store_name"] == "Store A"


def test_permissions_by_role(client, staff_a):
    data = client.get("/api/v1/auth/permissions", headers=auth_headers(staff_a)).json()["data"]

    assert data["role"] == "Staff"
    assert data["permissions"]["purchasing"] == ["view", "receive"]
    assert data["permissions"]["reports"] == []


def test_inactive_user_is_rejected(client, db, admin_a):
    admin_a.is_active = False
    db.commit()

    assert client.get("/api/v1/auth/me", headers=auth_headers(admin_a)).status_code == 401


def test_garbage_token_is_rejected(client):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert "X-Request-ID" in client.get("/").headers
