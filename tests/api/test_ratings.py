"""Tests for course rating endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth


def _rate(client: TestClient, token: str, rating: int, review: str | None = None) -> dict:
    resp = client.put(
        "/v1/ratings/intro-to-react", json={"rating": rating, "review": review}, headers=auth(token)
    )
    assert resp.status_code == 200
    return resp.json()


def test_rate_twice_keeps_single_record(client: TestClient, token: str) -> None:
    first = _rate(client, token, 3, "fine")
    second = _rate(client, token, 5, "great")

    assert second["id"] == first["id"]
    body = client.get("/v1/ratings/course/intro-to-react", headers=auth(token)).json()
    assert body["count"] == 1
    assert body["average"] == 5.0
    assert body["ratings"][0]["review"] == "great"


def test_rating_out_of_range(client: TestClient, token: str) -> None:
    resp = client.put("/v1/ratings/intro-to-react", json={"rating": 6}, headers=auth(token))
    assert resp.status_code == 422


def test_verified_purchase_requires_enrollment(client: TestClient, token: str) -> None:
    assert _rate(client, token, 4)["is_verified_purchase"] is False
    client.post("/v1/courses/intro-to-react/enroll", headers=auth(token))
    assert _rate(client, token, 4)["is_verified_purchase"] is True


def test_my_ratings(client: TestClient, token: str, other_token: str) -> None:
    _rate(client, token, 4)
    _rate(client, other_token, 2)

    mine = client.get("/v1/ratings/me", headers=auth(token)).json()
    assert [r["rating"] for r in mine] == [4]


def test_course_summary_histogram(client: TestClient, token: str, other_token: str) -> None:
    _rate(client, token, 4)
    _rate(client, other_token, 2)

    body = client.get("/v1/ratings/course/intro-to-react", headers=auth(token)).json()
    assert body["count"] == 2
    assert body["average"] == 3.0
    assert body["histogram"] == {"1": 0, "2": 1, "3": 0, "4": 1, "5": 0}


def test_update_own_rating(client: TestClient, token: str) -> None:
    rating = _rate(client, token, 2)
    resp = client.patch(
        f"/v1/ratings/{rating['id']}", json={"rating": 4, "review": "grew on me"}, headers=auth(token)
    )
    assert resp.status_code == 200
    assert resp.json()["rating"] == 4


def test_cannot_edit_or_delete_others_rating(
    client: TestClient, token: str, other_token: str
) -> None:
    rating = _rate(client, token, 2)

    resp = client.patch(f"/v1/ratings/{rating['id']}", json={"rating": 1}, headers=auth(other_token))
    assert resp.status_code == 403
    resp = client.delete(f"/v1/ratings/{rating['id']}", headers=auth(other_token))
    assert resp.status_code == 403


def test_delete_rating(client: TestClient, token: str) -> None:
    rating = _rate(client, token, 2)

    assert client.delete(f"/v1/ratings/{rating['id']}", headers=auth(token)).status_code == 204
    assert client.delete(f"/v1/ratings/{rating['id']}", headers=auth(token)).status_code == 404
    assert client.get("/v1/ratings/me", headers=auth(token)).json() == []


def test_admin_can_delete_any_rating(client: TestClient, token: str, admin_token: str) -> None:
    rating = _rate(client, token, 1)
    assert client.delete(f"/v1/ratings/{rating['id']}", headers=auth(admin_token)).status_code == 204
