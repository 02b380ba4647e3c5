"""Tests for authentication API endpoints."""

from __future__ import annotations

import datetime
import typing as t

import jwt as pyjwt
import pytest
from fastapi.testclient import TestClient

from stagegate.core import StagegateContainer
from stagegate.model import User, UserID

EncodeJWT = t.Callable[[dict[str, t.Any]], str]


@pytest.fixture
def encode_jwt(container: StagegateContainer) -> EncodeJWT:
    """Sign arbitrary claims with the key and algorithm the app verifies tokens with."""
    jwt_manager = container.auth().jwt_manager()
    algorithm = container.config.web.stagegate.auth.jwt_algorithm()

    def encode(payload: dict[str, t.Any]) -> str:
        return pyjwt.encode(payload, jwt_manager.secret_key, algorithm=algorithm)

    return encode


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success_returns_token(self, client: TestClient, gatekeeper: User) -> None:
        response = client.post("/api/auth/login", json={"email": "gatekeeper@example.com", "password": "password123"})

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["user_id"] == str(gatekeeper.user_id)
        assert data["user"]["name"] == "Gil Gatekeeper"
        assert data["user"]["role"] == "GATEKEEPER"
        assert data["token"]["token_type"] == "bearer"
        assert data["token"]["access_token"]

    def test_login_wrong_password_returns_401(self, client: TestClient, gatekeeper: User) -> None:
        response = client.post("/api/auth/login", json={"email": "gatekeeper@example.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_login_unknown_email_returns_401(self, client: TestClient) -> None:
        response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "password123"})

        assert response.status_code == 401

    def test_login_token_works(self, client: TestClient, lead: User) -> None:
        login = client.post("/api/auth/login", json={"email": "lead@example.com", "password": "password123"})
        token = login.json()["token"]["access_token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["email"] == "lead@example.com"


class TestMe:
    """Tests for GET /api/auth/me."""

    def test_requires_token(self, client: TestClient) -> None:
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_garbage_token(self, client: TestClient) -> None:
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_expired_token(self, client: TestClient, lead: User, encode_jwt: EncodeJWT) -> None:
        token = encode_jwt({
            "sub": str(lead.user_id),
            "role": lead.role.value,
            "exp": datetime.datetime.now(datetime.UTC) - datetime.timedelta(minutes=1),
        })

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_deleted_user(
        self, client: TestClient, auth_header: t.Callable[[User], dict[str, str]], lead: User
    ) -> None:
        ghost = lead.model_copy(update={"user_id": UserID()})

        response = client.get("/api/auth/me", headers=auth_header(ghost))

        assert response.status_code == 401
        assert response.json()["detail"] == "User not found"
