from __future__ import annotations

from datetime import timedelta

import pytest
from flask import Flask
from flask.testing import FlaskClient

from custody.app import create_app, get_container
from custody.shared.config import AppConfig, SecurityConfig
from custody.shared.utils.clock import utc_now


@pytest.fixture()
def app(memory_config: AppConfig) -> Flask:
    return create_app(memory_config)


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


def _register_and_login(client: FlaskClient, user_id: str = "alice") -> str:
    response = client.post("/api/auth/register", json={"userId": user_id, "password": "s3cret"})
    assert response.status_code == 201
    response = client.post("/api/auth/login", json={"userId": user_id, "password": "s3cret"})
    assert response.status_code == 200
    return response.get_json()["token"]


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_register_returns_201(client: FlaskClient) -> None:
    response = client.post("/api/auth/register", json={"userId": "alice", "password": "s3cret"})

    assert response.status_code == 201
    assert response.get_json() == {"userId": "alice", "message": "registered"}


def test_register_duplicate_returns_409(client: FlaskClient) -> None:
    client.post("/api/auth/register", json={"userId": "alice", "password": "s3cret"})
    response = client.post("/api/auth/register", json={"userId": "alice", "password": "other"})

    assert response.status_code == 409
    assert response.get_json()["error"] == "user_already_exists"


def test_register_empty_user_id_returns_invalid_input(client: FlaskClient) -> None:
    response = client.post("/api/auth/register", json={"userId": "  ", "password": "s3cret"})

    assert response.status_code == 400
    assert response.get_json() == {"error": "invalid_input", "context": {"field": "user_id"}}


@pytest.mark.parametrize("user_id", ["", "x" * 65])
def test_login_malformed_user_id_returns_invalid_credentials(
    client: FlaskClient, user_id: str
) -> None:
    response = client.post("/api/auth/login", json={"userId": user_id, "password": "s3cret"})

    assert response.status_code == 401
    assert response.get_json() == {"error": "invalid_credentials"}

def test_register_missing_fields_returns_422(client: FlaskClient) -> None:
    response = client.post("/api/auth/register", json={"userId": "alice"})

    assert response.status_code == 422
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert payload["context"]["fields"] == ["password"]


def test_login_returns_bearer_token_and_cookie(client: FlaskClient) -> None:
    client.post("/api/auth/register", json={"userId": "alice", "password": "s3cret"})

    response = client.post("/api/auth/login", json={"userId": "alice", "password": "s3cret"})

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["tokenType"] == "bearer"
    assert payload["token"]
    assert payload["expiresAt"]
    cookie = response.headers["Set-Cookie"]
    assert cookie.startswith("auth_token=")
    assert "HttpOnly" in cookie


def test_login_failures_are_indistinguishable(client: FlaskClient) -> None:
    client.post("/api/auth/register", json={"userId": "alice", "password": "s3cret"})

    wrong = client.post("/api/auth/login", json={"userId": "alice", "password": "nope"})
    unknown = client.post("/api/auth/login", json={"userId": "bob", "password": "nope"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json() == unknown.get_json() == {"error": "invalid_credentials"}


def test_login_lockout_returns_429(client: FlaskClient) -> None:
    client.post("/api/auth/register", json={"userId": "alice", "password": "s3cret"})
    for _ in range(5):
        client.post("/api/auth/login", json={"userId": "alice", "password": "nope"})

    response = client.post("/api/auth/login", json={"userId": "alice", "password": "s3cret"})

    assert response.status_code == 429
    assert response.get_json()["error"] == "account_locked"


def test_account_flow(client: FlaskClient) -> None:
    token = _register_and_login(client)

    response = client.get("/api/account", headers=_bearer(token))
    assert response.status_code == 200
    account_id = response.get_json()["accountId"]
    assert response.get_json() == {"accountId": account_id, "balance": 0}

    response = client.post("/api/account/deposit", json={"amount": -5}, headers=_bearer(token))
    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_amount"

    response = client.post("/api/account/deposit", json={"amount": 100}, headers=_bearer(token))
    assert response.get_json() == {"accountId": account_id, "balance": 100}

    response = client.post("/api/account/withdraw", json={"amount": 150}, headers=_bearer(token))
    assert response.status_code == 409
    assert response.get_json() == {
        "error": "insufficient_balance",
        "context": {"balance": 100, "required": 150},
    }

    response = client.post("/api/account/withdraw", json={"amount": 40}, headers=_bearer(token))
    assert response.get_json() == {"accountId": account_id, "balance": 60}


@pytest.mark.parametrize("amount", ["10", 10.5, True, None])
def test_amount_must_be_an_integer(client: FlaskClient, amount) -> None:
    token = _register_and_login(client)

    response = client.post("/api/account/deposit", json={"amount": amount}, headers=_bearer(token))

    assert response.status_code == 422
    assert response.get_json()["error"] == "validation_error"


def test_protected_routes_require_token(app: Flask) -> None:
    client = app.test_client()

    assert client.get("/api/account").status_code == 401
    response = client.get("/api/account", headers=_bearer("not-a-real-token"))
    assert response.status_code == 401
    assert response.get_json() == {"error": "unauthorized"}
    response = client.post("/api/account/deposit", json={"amount": 5})
    assert response.status_code == 401


def test_cookie_fallback(client: FlaskClient) -> None:
    _register_and_login(client)

    # the test client keeps the auth_token cookie from login
    response = client.get("/api/account")

    assert response.status_code == 200


def test_logout_revokes_token(client: FlaskClient) -> None:
    token = _register_and_login(client)

    response = client.delete("/api/auth/logout", headers=_bearer(token))
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}

    assert client.get("/api/account", headers=_bearer(token)).status_code == 401
    # idempotent
    assert client.delete("/api/auth/logout", headers=_bearer(token)).status_code == 200


def test_expired_token_is_rejected(app: Flask, client: FlaskClient) -> None:
    token = _register_and_login(client)
    authenticator = get_container(app).authenticator
    authenticator._clock = lambda: utc_now() + timedelta(hours=24, seconds=1)

    response = client.get("/api/account", headers=_bearer(token))

    assert response.status_code == 401


def test_health_memory_backend(client: FlaskClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"ok": True, "database": "memory"}


def test_security_headers(client: FlaskClient) -> None:
    response = client.get("/api/health")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "Strict-Transport-Security" not in response.headers


def test_unknown_route_returns_json_404(client: FlaskClient) -> None:
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.get_json() == {"error": "not_found"}


def test_rate_limit(memory_config: AppConfig) -> None:
    memory_config.security = SecurityConfig(ENABLE_RATE_LIMIT=True, RL_LIMIT=2, RL_WINDOW=60)
    client = create_app(memory_config).test_client()

    statuses = [
        client.post("/api/auth/login", json={"userId": "alice", "password": "x"}).status_code
        for _ in range(3)
    ]

    assert statuses == [401, 401, 429]


def test_sql_backend_flow(sql_config: AppConfig) -> None:
    client = create_app(sql_config).test_client()
    token = _register_and_login(client)

    response = client.post("/api/account/deposit", json={"amount": 25}, headers=_bearer(token))
    assert response.get_json()["balance"] == 25

    response = client.post(
        "/api/account/deposit", json={"amount": 2**63}, headers=_bearer(token)
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_amount"

    assert client.get("/api/health").get_json() == {"ok": True, "database": "ok"}

    client.delete("/api/auth/logout", headers=_bearer(token))
    assert client.get("/api/account", headers=_bearer(token)).status_code == 401


def test_stateless_tokens_over_http(memory_config: AppConfig) -> None:
    memory_config.auth = memory_config.auth.model_copy(update={"token_strategy": "stateless"})
    client = create_app(memory_config).test_client()
    token = _register_and_login(client)

    assert token.count(".") == 2
    assert client.get("/api/account", headers=_bearer(token)).status_code == 200
