"""Tests for the front-end bundle fallback and health endpoint."""
from pathlib import Path

import pytest

from app.static.router import get_content_type, resolve_asset


@pytest.fixture
def dist_dir(settings) -> Path:
    root = Path(settings.static.dist_dir)
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_text("<html>sharebox</html>", encoding="utf-8")
    (root / "assets" / "app.js").write_text("console.log(1)", encoding="utf-8")
    return root


def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_serves_index(api_client, dist_dir):
    response = api_client.get("/")

    assert response.status_code == 200
    assert response.text == "<html>sharebox</html>"
    assert response.headers["content-type"].startswith("text/html")


def test_asset_with_content_type(api_client, dist_dir):
    response = api_client.get("/assets/app.js")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/javascript")


def test_unknown_path_is_404(api_client, dist_dir):
    response = api_client.get("/nothing/here.css")

    assert response.status_code == 404
    assert response.json() == {"detail": "Not found"}


def test_missing_bundle_is_404(api_client):
    assert api_client.get("/").status_code == 404


def test_resolve_asset_stays_inside_bundle(dist_dir):
    (dist_dir.parent / "secret.txt").write_text("nope", encoding="utf-8")

    assert resolve_asset(dist_dir, "../secret.txt") is None
    assert resolve_asset(dist_dir, "assets") is None
    assert resolve_asset(dist_dir, "") == (dist_dir / "index.html").resolve()


@pytest.mark.parametrize("name, expected", [
    ("index.html", "text/html; charset=utf-8"),
    ("style.CSS", "text/css"),
    ("favicon.ico", "image/x-icon"),
    ("font.woff2", None),
    ("LICENSE", None),
])
def test_get_content_type(name, expected):
    assert get_content_type(name) == expected
