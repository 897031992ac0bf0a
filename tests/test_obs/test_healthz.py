# tests/test_obs/test_healthz.py

import importlib

import pytest
from fastapi.testclient import TestClient

from movie_reviews.core.config import settings


@pytest.fixture()
def main_mod():
    return importlib.import_module("movie_reviews.main")


@pytest.fixture()
def app_client(main_mod):
    with TestClient(main_mod.create_app()) as c:
        yield c


def test_healthz(app_client):
    r = app_client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_readyz_memory_backend(monkeypatch, app_client):
    monkeypatch.setattr(settings, "REVIEWS_BACKEND", "memory")
    r = app_client.get("/readyz")
    assert r.status_code == 200
    assert r.json() == {"ready": True, "checks": {"store": True, "backend": "memory"}}


def test_readyz_sql_backend_down(monkeypatch, main_mod, app_client):
    async def _down():
        return False

    monkeypatch.setattr(settings, "REVIEWS_BACKEND", "sql")
    monkeypatch.setattr(main_mod, "db_healthcheck", _down, raising=True)

    r = app_client.get("/readyz")
    assert r.status_code == 503
    assert r.json()["ready"] is False


def test_root_points_to_docs(app_client):
    body = app_client.get("/").json()
    assert body["name"] == settings.PROJECT_NAME
    assert body["version"] == settings.VERSION
    assert body["docs"] == ("/docs" if settings.ENABLE_DOCS else "")


def test_request_id_generated_and_echoed(app_client):
    r = app_client.get("/healthz")
    generated = r.headers.get("X-Request-ID")
    assert generated

    supplied = "3f1c5a2e-8d4b-4c6a-9e7f-0a1b2c3d4e5f"
    r = app_client.get("/healthz", headers={"X-Request-ID": supplied})
    assert r.headers["X-Request-ID"] == supplied

    r = app_client.get("/healthz", headers={"X-Request-ID": "not-a-uuid"})
    assert r.headers["X-Request-ID"] != "not-a-uuid"


def test_full_app_review_round_trip(monkeypatch, app_client, auth_headers, author_id):
    monkeypatch.setattr(settings, "REVIEWS_BACKEND", "memory")
    h = auth_headers(author_id)
    prefix = settings.API_V1_STR

    created = app_client.post(f"{prefix}/movies/the-thing/reviews", json={"rating": 5, "review": "paranoia"}, headers=h)
    assert created.status_code == 201
    rid = created.json()["review"]["id"]

    fetched = app_client.get(f"{prefix}/reviews/{rid}")
    assert fetched.status_code == 200
    assert fetched.json()["data"]["user"]["id"] == author_id

    assert app_client.delete(f"{prefix}/reviews/{rid}", headers=h).status_code == 204


def test_problem_json_carries_request_id(app_client):
    r = app_client.post(f"{settings.API_V1_STR}/movies/x/reviews", json={"rating": 1, "review": "x"})
    assert r.status_code == 401
    body = r.json()
    assert body["status"] == 401
    assert body["request_id"] == r.headers["X-Request-ID"]
