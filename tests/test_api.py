"""Auth and profile API tests."""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

SESSION_COOKIE = "recetas_session"


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_user(client):
    """Test user registration creates the account, its profile, and a session."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "NewUser@Example.com", "password": "password123", "name": "Nueva"},
    )
    assert response.status_code == 201
    data = response.json()
    assert "access_token" in data
    assert data["user"]["email"] == "newuser@example.com"
    assert data["user"]["display_name"] == "Nueva"
    assert SESSION_COOKIE in response.cookies


def test_register_without_name_uses_email_prefix(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "ana@example.com", "password": "password123"},
    )
    assert response.status_code == 201
    assert response.json()["user"]["display_name"] == "ana"


def test_register_duplicate_email(client, auth_headers):
    """Test registration with duplicate email fails."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": auth_headers.email, "password": "password123", "name": "Duplicate"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_register_short_password(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "short@example.com", "password": "123"},
    )
    assert response.status_code == 422


def test_login(client, auth_headers):
    """Test user login."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    assert response.status_code == 200
    assert "access_token" in response.json()
    assert SESSION_COOKIE in response.cookies


def test_login_wrong_password(client, auth_headers):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "wrongpass"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid login credentials"


def test_get_current_user(client, auth_headers):
    """Test getting current user info."""
    response = client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == auth_headers.email
    assert response.json()["display_name"] == "Test User"


def test_get_current_user_from_session_cookie(client, auth_headers):
    client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 200
    assert response.json()["id"] == auth_headers.user_id


def test_me_requires_session(client):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Auth session missing!"


def test_me_rejects_invalid_token(client):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid authentication credentials"


def test_logout_clears_session(client, auth_headers):
    client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    response = client.post("/api/v1/auth/logout")
    assert response.status_code == 200

    assert client.get("/api/v1/auth/me").status_code == 401


def test_change_password(client, auth_headers):
    response = client.post(
        "/api/v1/auth/password",
        headers=auth_headers,
        json={"current_password": "testpass123", "new_password": "newpass456"},
    )
    assert response.status_code == 204

    old = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    assert old.status_code == 401
    new = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "newpass456"}
    )
    assert new.status_code == 200


def test_change_password_wrong_current(client, auth_headers):
    response = client.post(
        "/api/v1/auth/password",
        headers=auth_headers,
        json={"current_password": "nope", "new_password": "newpass456"},
    )
    assert response.status_code == 400


def test_change_password_must_differ(client, auth_headers):
    response = client.post(
        "/api/v1/auth/password",
        headers=auth_headers,
        json={"current_password": "testpass123", "new_password": "testpass123"},
    )
    assert response.status_code == 400
    assert "different" in response.json()["detail"]


# --- Password recovery ---


def request_reset_link(client, email: str) -> str:
    """Ask for a reset link and return the token it carries."""
    with patch("src.tasks.password_reset.send_password_reset.delay") as mock_task:
        response = client.post("/api/v1/auth/password/forgot", json={"email": email})
    assert response.status_code == 202
    mock_task.assert_called_once()
    sent_to, url = mock_task.call_args.args
    assert sent_to == email
    query = parse_qs(urlparse(url).query)
    assert urlparse(url).path == "/reset-password"
    return query["token"][0]


def test_forgot_password_sends_link(client, auth_headers):
    token = request_reset_link(client, auth_headers.email)
    assert token


def test_forgot_password_unknown_email(client):
    with patch("src.tasks.password_reset.send_password_reset.delay") as mock_task:
        response = client.post(
            "/api/v1/auth/password/forgot", json={"email": "nadie@example.com"}
        )
    assert response.status_code == 202
    assert "email" in response.json()["message"]
    mock_task.assert_not_called()


def test_reset_password(client, auth_headers):
    token = request_reset_link(client, auth_headers.email)

    response = client.post(
        "/api/v1/auth/password/reset", json={"token": token, "new_password": "newpass456"}
    )
    assert response.status_code == 200
    assert response.json()["user"]["email"] == auth_headers.email
    assert SESSION_COOKIE in response.cookies

    old = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    assert old.status_code == 401
    new = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "newpass456"}
    )
    assert new.status_code == 200


def test_reset_token_works_once(client, auth_headers):
    token = request_reset_link(client, auth_headers.email)
    first = client.post(
        "/api/v1/auth/password/reset", json={"token": token, "new_password": "newpass456"}
    )
    assert first.status_code == 200

    again = client.post(
        "/api/v1/auth/password/reset", json={"token": token, "new_password": "other789"}
    )
    assert again.status_code == 400
    assert again.json()["detail"] == "Token has expired or is invalid"


def test_reset_password_invalid_token(client):
    response = client.post(
        "/api/v1/auth/password/reset", json={"token": "not-a-token", "new_password": "newpass456"}
    )
    assert response.status_code == 400


def test_reset_password_must_differ(client, auth_headers):
    token = request_reset_link(client, auth_headers.email)
    response = client.post(
        "/api/v1/auth/password/reset", json={"token": token, "new_password": "testpass123"}
    )
    assert response.status_code == 400
    assert "different" in response.json()["detail"]


def test_reset_token_is_not_a_session(client, auth_headers):
    token = request_reset_link(client, auth_headers.email)
    client.cookies.clear()
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_session_token_cannot_reset_password(client, auth_headers):
    bearer = auth_headers["Authorization"].removeprefix("Bearer ")
    response = client.post(
        "/api/v1/auth/password/reset", json={"token": bearer, "new_password": "newpass456"}
    )
    assert response.status_code == 400


def test_reset_link_delivery_is_logged(caplog):
    from src.tasks.password_reset import send_password_reset

    with caplog.at_level("INFO", logger="src.tasks.password_reset"):
        result = send_password_reset(
            "test@example.com", "http://localhost:3000/reset-password?token=x"
        )
    assert result == {"success": True}
    assert "reset-password?token=x" in caplog.text


# --- Profiles ---


def test_get_my_profile(client, auth_headers):
    response = client.get("/api/v1/profiles/me", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == auth_headers.user_id
    assert data["email"] == auth_headers.email
    assert data["display_name"] == "Test User"


def test_update_my_profile(client, auth_headers):
    """Omitted fields stay; blank ones are cleared."""
    client.put(
        "/api/v1/profiles/me",
        headers=auth_headers,
        json={"bio": "Cocinero aficionado", "avatar_url": "/storage/avatars/1/a.png"},
    )
    response = client.put(
        "/api/v1/profiles/me",
        headers=auth_headers,
        json={"display_name": "Chef", "avatar_url": "  "},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["display_name"] == "Chef"
    assert data["bio"] == "Cocinero aficionado"
    assert data["avatar_url"] is None


def test_public_profile(client, auth_headers, other_headers):
    response = client.get(f"/api/v1/profiles/{auth_headers.user_id}", headers=other_headers)
    assert response.status_code == 200
    assert response.json()["display_name"] == "Test User"
    assert "email" not in response.json()


def test_public_profile_not_found(client):
    response = client.get("/api/v1/profiles/99999")
    assert response.status_code == 404


def test_profile_stats(client, auth_headers, other_headers, create_recipe):
    mine = create_recipe(auth_headers, "Pan Casero")
    theirs = create_recipe(other_headers, "Sopa de Cebolla")
    client.post(f"/api/v1/recipes/{theirs}/like", headers=auth_headers)
    client.post(f"/api/v1/recipes/{theirs}/bookmark", headers=auth_headers)
    client.post(f"/api/v1/recipes/{mine}/bookmark", headers=auth_headers)

    response = client.get("/api/v1/profiles/me/stats", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"recipes": 1, "bookmarks": 2, "likes": 1}
