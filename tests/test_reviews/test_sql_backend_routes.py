# tests/test_reviews/test_sql_backend_routes.py
"""
Routes wired to the SQLAlchemy store through the real `get_review_repository`
provider (`REVIEWS_BACKEND=sql`), with `get_async_db` pointed at the test session.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from movie_reviews.core.config import settings
from movie_reviews.db.session import get_async_db
from tests.fixtures.app import API_PREFIX, build_test_app

pytestmark = pytest.mark.anyio


@pytest.fixture()
async def sql_client(monkeypatch, db_session):
    monkeypatch.setattr(settings, "REVIEWS_BACKEND", "sql")
    app = build_test_app()

    async def _db():
        yield db_session

    app.dependency_overrides[get_async_db] = _db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def test_review_lifecycle_on_sql_store(sql_client, auth_headers, author_id, other_user_id):
    author, fan = auth_headers(author_id), auth_headers(other_user_id)
    listing = f"{API_PREFIX}/movies/the-prestige/reviews"

    r = await sql_client.post(listing, json={"rating": 4.5, "review": "are you watching closely"}, headers=author)
    assert r.status_code == 201
    created = r.json()["review"]
    rid = created["id"]
    assert created["rating"] == 4.5
    assert created["movieID"] == "the-prestige"
    assert created["createdAt"].endswith("Z")
    assert created["updatedAt"] is None

    r = await sql_client.get(listing, headers=fan)
    assert [(d["id"], d["isUserLoggedIn"], d["isLiked"]) for d in r.json()["data"]] == [(rid, False, False)]

    r = await sql_client.post(f"{API_PREFIX}/reviews/{rid}/like", headers=fan)
    assert r.json()["message"] == "Review liked successfully"
    r = await sql_client.post(f"{API_PREFIX}/reviews/{rid}/like", headers=fan)
    assert r.json()["message"] == "You have already liked this review"
    assert r.json()["review"]["likes"] == [other_user_id]

    data = (await sql_client.get(listing, headers=fan)).json()["data"]
    assert (data[0]["isUserLoggedIn"], data[0]["isLiked"]) == (False, True)
    data = (await sql_client.get(listing, headers=author)).json()["data"]
    assert (data[0]["isUserLoggedIn"], data[0]["isLiked"]) == (True, False)

    r = await sql_client.get(f"{API_PREFIX}/reviews/{rid}")
    assert r.status_code == 200
    assert r.json()["data"]["user"] == {"id": author_id, "username": None, "fullName": None}

    r = await sql_client.put(f"{API_PREFIX}/reviews/{rid}", json={"rating": 5, "review": "the pledge"}, headers=author)
    assert r.status_code == 201
    assert r.json()["review"]["updatedAt"] is not None

    r = await sql_client.delete(f"{API_PREFIX}/reviews/{rid}", headers=author)
    assert r.status_code == 204
    r = await sql_client.get(f"{API_PREFIX}/reviews/{rid}")
    assert r.status_code == 404
    assert r.json() == {"error": "Review not found"}


async def test_like_with_non_uuid_caller_on_sql_store(sql_client, auth_headers, author_id):
    r = await sql_client.post(
        f"{API_PREFIX}/movies/heat/reviews", json={"rating": 3, "review": "coffee scene"},
        headers=auth_headers(author_id),
    )
    rid = r.json()["review"]["id"]

    r = await sql_client.post(f"{API_PREFIX}/reviews/{rid}/like", headers=auth_headers("alice"))

    assert r.status_code == 500
    assert r.json() == {"error": "Invalid user id: alice"}
