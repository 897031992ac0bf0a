# tests/test_reviews/test_get_reviews.py

from fastapi.testclient import TestClient

from movie_reviews.core.config import settings
from movie_reviews.repositories.reviews import MemoryReviewRepository
from tests.fixtures.app import build_test_app

LIST = "/api/v1/movies/{movie}/reviews"


class ExplodingRepo(MemoryReviewRepository):
    async def list_movie_reviews(self, movie_id):
        raise RuntimeError("boom")


def _add(client, headers, movie="memento", rating=5, text="great"):
    r = client.post(LIST.format(movie=movie), json={"rating": rating, "review": text}, headers=headers)
    assert r.status_code == 201
    return r.json()["review"]


def test_get_reviews_empty_movie(client):
    r = client.get(LIST.format(movie="nothing-here"))
    assert r.status_code == 200
    assert r.json() == {"data": []}


def test_get_reviews_anonymous_flags_false(client, auth_headers, author_id):
    _add(client, auth_headers(author_id))

    data = client.get(LIST.format(movie="memento")).json()["data"]

    assert len(data) == 1
    assert data[0]["isUserLoggedIn"] is False
    assert data[0]["isLiked"] is False
    assert data[0]["user"]["id"] == author_id


def test_get_reviews_author_then_like(client, auth_headers, author_id):
    h = auth_headers(author_id)
    r1 = _add(client, h)

    data = client.get(LIST.format(movie="memento"), headers=h).json()["data"]
    assert data[0]["id"] == r1["id"]
    assert data[0]["isUserLoggedIn"] is True
    assert data[0]["isLiked"] is False

    client.post(f"/api/v1/reviews/{r1['id']}/like", headers=h)

    data = client.get(LIST.format(movie="memento"), headers=h).json()["data"]
    assert data[0]["isUserLoggedIn"] is True
    assert data[0]["isLiked"] is True
    assert data[0]["likes"] == [author_id]


def test_get_reviews_flags_per_review(client, auth_headers, author_id, other_user_id):
    mine = _add(client, auth_headers(author_id), text="mine")
    theirs = _add(client, auth_headers(other_user_id), text="theirs")
    client.post(f"/api/v1/reviews/{theirs['id']}/like", headers=auth_headers(author_id))

    data = client.get(LIST.format(movie="memento"), headers=auth_headers(author_id)).json()["data"]
    by_id = {d["id"]: d for d in data}

    assert by_id[mine["id"]]["isUserLoggedIn"] is True
    assert by_id[mine["id"]]["isLiked"] is False
    assert by_id[theirs["id"]]["isUserLoggedIn"] is False
    assert by_id[theirs["id"]]["isLiked"] is True


def test_get_reviews_oldest_first_and_scoped_to_movie(client, auth_headers, author_id):
    h = auth_headers(author_id)
    a = _add(client, h, text="a")
    b = _add(client, h, text="b")
    _add(client, h, movie="other-movie", text="elsewhere")

    data = client.get(LIST.format(movie="memento")).json()["data"]
    assert [d["id"] for d in data] == [a["id"], b["id"]]


def test_get_reviews_bad_token_is_401(client):
    r = client.get(LIST.format(movie="memento"), headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


def test_get_reviews_dev_header_identity(monkeypatch, client, auth_headers, author_id):
    monkeypatch.setattr(settings, "ALLOW_DEV_AUTH", True)
    _add(client, auth_headers(author_id))

    data = client.get(LIST.format(movie="memento"), headers={"X-User-Id": author_id}).json()["data"]
    assert data[0]["isUserLoggedIn"] is True


def test_get_reviews_rejects_bad_movie_id(client):
    assert client.get(LIST.format(movie="bad.movie")).status_code == 400


def test_get_reviews_failure_is_500():
    client = TestClient(build_test_app(ExplodingRepo()))
    r = client.get(LIST.format(movie="memento"))
    assert r.status_code == 500
    assert r.json() == {"error": "boom"}
