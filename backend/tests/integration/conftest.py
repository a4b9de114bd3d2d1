from __future__ import annotations

import re

import pytest
from fastapi.testclient import TestClient

from marketplace.dependencies.auth import get_viewer
from marketplace.main import app

_CSRF_PATTERN = re.compile(r'"X-CSRF-Token": "([^"]+)"')


@pytest.fixture
def client():
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def sign_in():
    """Make every request resolve to the given viewer."""

    def _sign_in(viewer):
        app.dependency_overrides[get_viewer] = lambda: viewer
        return viewer

    return _sign_in


@pytest.fixture
def csrf_token(client):
    """Fetch a page so the session holds a CSRF token, and return it."""

    def _fetch(path: str = "/") -> str:
        response = client.get(path)
        match = _CSRF_PATTERN.search(response.text)
        assert match, f"no CSRF token on {path}"
        return match.group(1)

    return _fetch
