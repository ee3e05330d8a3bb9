# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Routes are exercised through TestClient with the core layer patched, so
no database or Google credentials are needed.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from main import app
from web_api.auth import get_current_actor


@pytest.fixture(autouse=True)
def _jwt_secret():
    """Ensure JWT_SECRET is set so tokens can be created and verified."""
    with patch("web_api.auth.JWT_SECRET", "test-secret"):
        yield


@pytest.fixture
def actor():
    """The signed-in member making requests."""
    return {"user_id": 1, "is_admin": False}


@pytest.fixture
def client(actor):
    """Test client with authentication overridden."""

    async def override_get_current_actor():
        return actor

    app.dependency_overrides[get_current_actor] = override_get_current_actor
    yield TestClient(app)
    app.dependency_overrides.pop(get_current_actor, None)


@pytest.fixture
def anonymous_client():
    """Test client without a session."""
    return TestClient(app)
