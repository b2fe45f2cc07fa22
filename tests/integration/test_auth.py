"""JWT authentication (SimpleJWT) and the fail-closed default."""

import pytest

pytestmark = pytest.mark.integration


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200


class TestProtectedEndpoints:
    def test_no_token_returns_401(self, api_client):
        assert api_client.get("/api/v1/me").status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        assert api_client.get("/api/v1/orders/").status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        assert api_client.get("/api/v1/me").status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert "Bearer" in response.get("WWW-Authenticate", "")


class TestTokenFlow:
    def test_obtain_and_use_token(self, api_client, salesperson):
        token = api_client.post(
            "/api/v1/auth/token/",
            {"username": "sales", "password": "testpass123"},
            format="json",
        )
        assert token.status_code == 200

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.json()['access']}")
        response = api_client.get("/api/v1/me")

        assert response.status_code == 200
        assert response.json()["role"] == "Salesperson"

    def test_wrong_password(self, api_client, salesperson):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "sales", "password": "wrong"},
            format="json",
        )
        assert response.status_code == 401

    def test_system_actor_cannot_log_in(self, api_client, directory):
        directory.get_system_actor()
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "system", "password": ""},
            format="json",
        )
        assert response.status_code in (400, 401)
