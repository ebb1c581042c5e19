"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from greenspace.core.config import Settings
from greenspace.identity.delivery import MockCodeDeliveryService
from greenspace.identity.events import AuthEventHub
from greenspace.identity.provider import LocalIdentityProvider
from greenspace.web.app import create_app

FIXTURES_PATH = Path(__file__).resolve().parents[1] / "config" / "identity_fixtures.yml"

JANE_EMAIL = "jane.smith@example.org"
JANE_PASSWORD = "Greenspace#2024"
BOB_EMAIL = "bob.johnson@example.org"
BOB_PASSWORD = "Seedling!42"


@pytest.fixture
def delivery() -> MockCodeDeliveryService:
    return MockCodeDeliveryService()


@pytest.fixture
def hub() -> AuthEventHub:
    return AuthEventHub()


@pytest.fixture
def provider(delivery: MockCodeDeliveryService, hub: AuthEventHub) -> LocalIdentityProvider:
    return LocalIdentityProvider(delivery=delivery, hub=hub, fixtures_path=FIXTURES_PATH)


@pytest.fixture
def app(provider: LocalIdentityProvider) -> FastAPI:
    return create_app(settings=Settings(), identity_provider=provider)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def api_key_headers(app: FastAPI) -> dict[str, str]:
    return {"x-api-key": app.state.default_api_key.key}


def _sign_in(client: TestClient, email: str, password: str) -> dict:
    resp = client.post("/api/auth/sign-in", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
def jane(client: TestClient) -> dict:
    """Sign in Jane; returns the sign-in result plus ready-made headers."""
    result = _sign_in(client, JANE_EMAIL, JANE_PASSWORD)
    result["headers"] = {"Authorization": f"Bearer {result['tokens']['access_token']}"}
    return result


@pytest.fixture
def bob(client: TestClient) -> dict:
    result = _sign_in(client, BOB_EMAIL, BOB_PASSWORD)
    result["headers"] = {"Authorization": f"Bearer {result['tokens']['access_token']}"}
    return result
