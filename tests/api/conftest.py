"""
tests/api/conftest.py

Shared fixtures for API route tests.

The `client` fixture runs the real lifespan, so the in-process session
store is created on entry and discarded on exit; no external services are
involved.  Tests that need an authenticated client send the default
"changeme" key (matches settings.api_key default).
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from historygraph.main import app

# Default API key that matches settings.api_key default value.
VALID_API_KEY = "changeme"


@pytest.fixture()
def client() -> TestClient:  # type: ignore[return]
    """Return a TestClient with a fresh session store for each test."""
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c
