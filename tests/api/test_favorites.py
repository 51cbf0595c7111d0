from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth


def test_favorite_toggle(client: TestClient, token: str) -> None:
    resp = client.put("/v1/favorites/intro-to-react", json={"notes": "weekend"}, headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["notes"] == "weekend"

    status = client.get("/v1/favorites/intro-to-react", headers=auth(token)).json()
    assert status == {"course_id": "intro-to-react", "favorited": True}

    resp = client.delete("/v1/favorites/intro-to-react", headers=auth(token))
    assert resp.status_code == 204
    status = client.get("/v1/favorites/intro-to-react", headers=auth(token)).json()
    assert status["favorited"] is False


def test_favorite_without_body(client: TestClient, token: str) -> None:
    resp = client.put("/v1/favorites/advanced-typescript", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["notes"] is None


def test_list_favorites_is_per_user(client: TestClient, token: str, other_token: str) -> None:
    client.put("/v1/favorites/intro-to-react", headers=auth(token))
    client.put("/v1/favorites/advanced-typescript", headers=auth(other_token))

    mine = client.get("/v1/favorites", headers=auth(token)).json()
    assert [f["course_id"] for f in mine] == ["intro-to-react"]


def test_remove_missing_favorite_is_noop(client: TestClient, token: str) -> None:
    resp = client.delete("/v1/favorites/never-added", headers=auth(token))
    assert resp.status_code == 204
