from httpx import AsyncClient

from app.utils.security import create_tokens

BASE = "/api/v1/auth"


def _registration(**overrides) -> dict:
    payload = {
        "roll_number": "IT-2023-101",
        "name": "Neha Kulkarni",
        "email": "Neha@Example.com",
        "password": "SecurePass123",
        "confirm_password": "SecurePass123",
    }
    payload.update(overrides)
    return payload


class TestRegister:
    """Tests for POST /api/v1/auth/register"""

    async def test_register_student(self, client: AsyncClient):
        response = await client.post(f"{BASE}/register", json=_registration())

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["user"]["email"] == "neha@example.com"
        assert data["user"]["role"] == "student"
        assert data["user"]["roll_number"] == "IT-2023-101"
        assert data["tokens"]["access_token"]
        assert data["tokens"]["refresh_token"]

    async def test_duplicate_email(self, client: AsyncClient, student_user):
        response = await client.post(
            f"{BASE}/register", json=_registration(email="STUDENT@example.com")
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Email already registered"

    async def test_duplicate_roll_number(self, client: AsyncClient, student_user):
        response = await client.post(
            f"{BASE}/register", json=_registration(roll_number="CE-2021-014")
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Roll number already registered"

    async def test_password_mismatch(self, client: AsyncClient):
        response = await client.post(
            f"{BASE}/register", json=_registration(confirm_password="OtherPass123")
        )
        assert response.status_code == 422

    async def test_weak_password(self, client: AsyncClient):
        response = await client.post(
            f"{BASE}/register",
            json=_registration(password="alllowercase1", confirm_password="alllowercase1"),
        )
        assert response.status_code == 422


class TestLogin:
    """Tests for login, refresh and profile."""

    async def test_login(self, client: AsyncClient, student_user):
        response = await client.post(
            f"{BASE}/login", json={"email": "student@example.com", "password": "TestPass123"}
        )

        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    async def test_login_wrong_password(self, client: AsyncClient, student_user):
        response = await client.post(
            f"{BASE}/login", json={"email": "student@example.com", "password": "WrongPass123"}
        )
        assert response.status_code == 401

    async def test_oauth2_token_form(self, client: AsyncClient, admin_user):
        response = await client.post(
            f"{BASE}/token", data={"username": "admin@example.com", "password": "AdminPass123"}
        )

        assert response.status_code == 200
        assert response.json()["access_token"]

    async def test_refresh(self, client: AsyncClient, student_user):
        _, refresh_token = create_tokens(student_user.id, student_user.role.value)

        response = await client.post(f"{BASE}/refresh", json={"refresh_token": refresh_token})

        assert response.status_code == 200
        assert response.json()["access_token"]

    async def test_refresh_token_is_not_an_access_token(self, client: AsyncClient, student_user):
        _, refresh_token = create_tokens(student_user.id, student_user.role.value)

        response = await client.get(
            f"{BASE}/me", headers={"Authorization": f"Bearer {refresh_token}"}
        )

        assert response.status_code == 401

    async def test_me(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{BASE}/me", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get(f"{BASE}/me", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401
