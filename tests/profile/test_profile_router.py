"""Tests for profile domain router."""

from fastapi.testclient import TestClient

from conftest import BANNED_TOKEN, USER_TOKEN, bearer


def test_read_own_profile(client: TestClient):
    response = client.get("/profiles/me", headers=bearer(USER_TOKEN))

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "user-1"
    assert data["name"] == "User"
    assert data["is_admin"] is False
    assert data["is_banned"] is False


def test_banned_user_can_read_own_state(client: TestClient, banned_profile):
    """A banned account still sees its profile so the client can explain why."""
    response = client.get("/profiles/me", headers=bearer(BANNED_TOKEN))

    assert response.status_code == 200
    assert response.json()["is_banned"] is True


def test_first_sight_creates_profile(client: TestClient, auth_service):
    from valida.auth.service import TokenClaims

    auth_service.tokens["new-token"] = TokenClaims(
        uid="brand-new", email="new@example.com", user_metadata={"name": "Nova"}
    )

    response = client.get("/profiles/me", headers=bearer("new-token"))

    assert response.status_code == 200
    assert response.json()["id"] == "brand-new"
    assert response.json()["name"] == "Nova"


def test_update_name(client: TestClient):
    response = client.patch(
        "/profiles/me", json={"name": "Renamed"}, headers=bearer(USER_TOKEN)
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"


def test_update_cannot_grant_admin_or_unban(client: TestClient, session, test_profile):
    response = client.patch(
        "/profiles/me",
        json={"is_admin": True, "is_banned": False},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 200
    session.refresh(test_profile)
    assert test_profile.is_admin is False
    assert response.json()["is_admin"] is False
