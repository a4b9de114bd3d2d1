from __future__ import annotations

import logging

from fastapi.testclient import TestClient

from marketplace.main import app
from marketplace.models.profile import ROLE_BUSINESS


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_startup_logs_app_name(caplog) -> None:
    caplog.set_level(logging.INFO, logger="marketplace.main")
    with TestClient(app) as started:
        assert started.get("/health").status_code == 200
    assert "Starting Creator Marketplace..." in caplog.text


def test_no_static_mount(client) -> None:
    assert all(getattr(route, "name", None) != "static" for route in app.routes)
    assert client.get("/static/app.css").status_code == 404


def test_home_for_anonymous_visitor(client) -> None:
    response = client.get("/?returnUrl=/find-work")
    assert response.status_code == 200
    assert "Connect with Amazing Content Creators" in response.text
    assert "/auth/login?returnUrl=/find-work" in response.text


def test_home_sends_signed_in_user_back(client, sign_in, viewer_for, seed) -> None:
    sign_in(viewer_for(seed.profile()))
    response = client.get("/?returnUrl=/find-work", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/find-work"


def test_home_ignores_offsite_return_url(client, sign_in, viewer_for, seed) -> None:
    sign_in(viewer_for(seed.profile()))
    response = client.get("/?returnUrl=//evil.test", follow_redirects=False)
    assert response.status_code == 200


def test_dashboard_requires_session(client) -> None:
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/?returnUrl=%2Fdashboard"


def test_dashboard_requires_profile(client, sign_in, viewer_for) -> None:
    sign_in(viewer_for(None))
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/register"


def test_dashboard_shows_profile(client, sign_in, viewer_for, seed) -> None:
    profile = seed.profile(username="ada", instagram_url="https://instagram.com/ada")
    sign_in(viewer_for(profile))

    response = client.get("/dashboard")

    assert response.status_code == 200
    assert "@ada" in response.text
    assert "Public Profile" in response.text


def test_creator_directory(client, seed) -> None:
    seed.profile(username="ada", country="Nigeria")
    seed.profile(username="kofi", country="Ghana")
    seed.profile(username="private", is_public=False)
    seed.profile(ROLE_BUSINESS, username="brand")

    page = client.get("/creators")
    assert "@ada" in page.text and "@kofi" in page.text
    assert "@private" not in page.text and "@brand" not in page.text

    partial = client.get("/creators/partial", params={"country": "Ghana"})
    assert "@kofi" in partial.text
    assert "@ada" not in partial.text
    assert "<html" not in partial.text


def test_creator_profile_page(client, seed) -> None:
    seed.profile(username="ada", youtube_url="https://youtube.com/@ada")
    seed.profile(username="private", is_public=False)

    assert "View Channel" in client.get("/creators/ada").text
    assert client.get("/creators/private").status_code == 404
    assert client.get("/creators/nobody").status_code == 404
