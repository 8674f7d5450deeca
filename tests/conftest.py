"""Shared fixtures and utilities for oidclite tests."""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from oidclite.config import ClientConfiguration

DISCOVERY_URL = "https://idp.example.com/.well-known/openid-configuration"


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_config() -> ClientConfiguration:
    """Create a public client configuration with default redirect and scopes."""
    return ClientConfiguration(discovery_url=DISCOVERY_URL, client_id="test-client")


@pytest.fixture
def confidential_config() -> ClientConfiguration:
    """Create a confidential client configuration."""
    return ClientConfiguration(
        discovery_url=DISCOVERY_URL,
        client_id="test-client",
        client_secret="s3cret",
        redirect_uri="myapp://callback",
        scopes=("openid", "email"),
    )


@pytest.fixture
def discovery_data() -> dict[str, Any]:
    """Discovery document with both endpoints."""
    return {
        "issuer": "https://idp.example.com",
        "authorization_endpoint": "https://idp.example.com/auth",
        "token_endpoint": "https://idp.example.com/token",
    }


# ============================================================================
# Mock Fixtures
# ============================================================================


def make_http_client(
    get: httpx.Response | BaseException | None = None,
    post: httpx.Response | BaseException | None = None,
) -> AsyncMock:
    """Create a mock httpx.AsyncClient answering get/post with the given outcome."""
    mock_http = AsyncMock(spec=httpx.AsyncClient)
    for method, outcome in (("get", get), ("post", post)):
        if isinstance(outcome, BaseException):
            setattr(mock_http, method, AsyncMock(side_effect=outcome))
        else:
            setattr(mock_http, method, AsyncMock(return_value=outcome))
    mock_http.aclose = AsyncMock()
    return mock_http


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Temporarily clear oidclite environment variables."""
    old_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("OIDCLITE_") or key.startswith("TEST_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(old_env)


@pytest.fixture
def mock_http_factory():
    """Factory for mock HTTP clients, see make_http_client."""
    return make_http_client
