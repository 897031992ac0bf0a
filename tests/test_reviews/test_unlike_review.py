# tests/test_reviews/test_unlike_review.py

from uuid import uuid4

from fastapi.testclient import TestClient

from movie_reviews.repositories.reviews import MemoryReviewRepository
from tests.fixtures.app import build_test_app


class ExplodingRepo(MemoryReviewRepository):
    async def remove_like(self, review_id, user_id):
        raise RuntimeError("boom")


def _liked_review(client, auth_headers, author_id, liker_id):
    rid = client.post("/api/v1/movies/aliens/reviews", json={"rating": 5, "review": "game over man"},
                      headers=auth_headers(author_id)).json()["review"]["id"]
    client.post(f"/api/v1/reviews/{rid}/like", headers=auth_headers(liker_id))
    return rid


def test_unlike_review(client, auth_headers, author_id, other_user_id):
    rid = _liked_review(client, auth_headers, author_id, other_user_id)

    r = client.post(f"/api/v1/reviews/{rid}/unlike", headers=auth_headers(other_user_id))

    assert r.status_code == 200
    assert r.json()["message"] == "Review unliked successfully"
    assert r.json()["review"]["likes"] == []


def test_unlike_review_not_liked_is_noop(client, auth_headers, author_id, other_user_id):
    rid = _liked_review(client, auth_headers, author_id, other_user_id)

    r = client.post(f"/api/v1/reviews/{rid}/unlike", headers=auth_headers(author_id))

    assert r.status_code == 200
    assert r.json()["message"] == "You have not liked this review"
    assert r.json()["review"]["likes"] == [other_user_id]


def test_unlike_review_not_found(client, auth_headers, author_id):
    r = client.post(f"/api/v1/reviews/{uuid4()}/unlike", headers=auth_headers(author_id))
    assert r.status_code == 404
    assert r.json() == {"error": "Review not found"}


def test_unlike_review_requires_auth(client):
    assert client.post(f"/api/v1/reviews/{uuid4()}/unlike").status_code == 401


def test_unlike_review_failure_is_500(auth_headers, author_id):
    client = TestClient(build_test_app(ExplodingRepo()))
    r = client.post(f"/api/v1/reviews/{uuid4()}/unlike", headers=auth_headers(author_id))
    assert r.status_code == 500
    assert r.json() == {"error": "boom"}
