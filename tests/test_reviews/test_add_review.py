# tests/test_reviews/test_add_review.py

from fastapi.testclient import TestClient

from movie_reviews.api.v1.routers import reviews as reviews_routes
from movie_reviews.core.config import settings
from movie_reviews.repositories.reviews import MemoryReviewRepository
from tests.fixtures.app import build_test_app

URL = "/api/v1/movies/{movie}/reviews"


class ExplodingRepo(MemoryReviewRepository):
    async def create_review(self, **kwargs):
        raise RuntimeError("boom")


def test_add_review_created(client, auth_headers, author_id):
    r = client.post(URL.format(movie="inception"), json={"rating": 4.5, "review": "Dreams within dreams"},
                    headers=auth_headers(author_id))

    assert r.status_code == 201
    assert r.headers["Cache-Control"] == "no-store"
    body = r.json()
    assert body["message"] == "Review added successfully"
    review = body["review"]
    assert review["movieID"] == "inception"
    assert review["user"] == author_id
    assert review["rating"] == 4.5
    assert review["review"] == "Dreams within dreams"
    assert review["likes"] == []
    assert review["updatedAt"] is None
    assert review["createdAt"]
    assert review["id"]


def test_add_review_persists(client, memory_repo, auth_headers, author_id):
    import anyio

    r = client.post(URL.format(movie="inception"), json={"rating": 3, "review": "ok"}, headers=auth_headers(author_id))
    rid = r.json()["review"]["id"]

    stored = anyio.run(memory_repo.get_review, rid)
    assert stored["movie_id"] == "inception"
    assert stored["user_id"] == author_id
    assert stored["rating"] == 3


def test_add_review_allows_duplicates(client, auth_headers, author_id):
    h = auth_headers(author_id)
    first = client.post(URL.format(movie="heat"), json={"rating": 5, "review": "one"}, headers=h)
    second = client.post(URL.format(movie="heat"), json={"rating": 2, "review": "two"}, headers=h)

    assert first.status_code == second.status_code == 201
    assert first.json()["review"]["id"] != second.json()["review"]["id"]
    listed = client.get(URL.format(movie="heat")).json()["data"]
    assert len(listed) == 2


def test_add_review_requires_auth(client):
    r = client.post(URL.format(movie="inception"), json={"rating": 4, "review": "x"})
    assert r.status_code == 401
    assert r.headers["content-type"].startswith("application/problem+json")
    assert r.headers.get("WWW-Authenticate") == "Bearer"


def test_add_review_rejects_bad_movie_id(client, auth_headers, author_id):
    r = client.post(URL.format(movie="bad.movie"), json={"rating": 4, "review": "x"}, headers=auth_headers(author_id))
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid movie id"


def test_add_review_validates_body(client, auth_headers, author_id):
    r = client.post(URL.format(movie="inception"), json={"rating": "lots", "review": "x"},
                    headers=auth_headers(author_id))
    assert r.status_code == 422

    r = client.post(URL.format(movie="inception"), json={"rating": 4}, headers=auth_headers(author_id))
    assert r.status_code == 422


def test_add_review_failure_is_legacy_200(auth_headers, author_id):
    client = TestClient(build_test_app(ExplodingRepo()))
    r = client.post(URL.format(movie="inception"), json={"rating": 4, "review": "x"}, headers=auth_headers(author_id))
    assert r.status_code == 200
    assert r.json() == {"error": "boom"}


def test_add_review_failure_strict_status(monkeypatch, auth_headers, author_id):
    monkeypatch.setattr(settings, "REVIEWS_STRICT_STATUS", True)
    client = TestClient(build_test_app(ExplodingRepo()))
    r = client.post(URL.format(movie="inception"), json={"rating": 4, "review": "x"}, headers=auth_headers(author_id))
    assert r.status_code == 500
    assert r.json() == {"error": "boom"}


def test_add_review_logs_action(monkeypatch, client, auth_headers, author_id):
    calls = []

    def _recorder(request, user_id, action, **meta):
        calls.append({"user_id": user_id, "action": action, "meta": meta})

    monkeypatch.setattr(reviews_routes, "_log_review_action", _recorder, raising=True)
    r = client.post(URL.format(movie="inception"), json={"rating": 4, "review": "x"}, headers=auth_headers(author_id))

    assert r.status_code == 201
    assert calls == [{
        "user_id": author_id,
        "action": "REVIEW_CREATE",
        "meta": {"review_id": r.json()["review"]["id"], "movie_id": "inception"},
    }]


def test_add_review_dev_header(monkeypatch, client, author_id):
    monkeypatch.setattr(settings, "ALLOW_DEV_AUTH", True)
    r = client.post(URL.format(movie="inception"), json={"rating": 1, "review": "meh"},
                    headers={"X-User-Id": author_id})
    assert r.status_code == 201
    assert r.json()["review"]["user"] == author_id
