"""Tests for enrollment listing and status transitions over HTTP."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth


def _enroll(client: TestClient, token: str, slug: str = "intro-to-react") -> dict:
    resp = client.post(f"/v1/courses/{slug}/enroll", headers=auth(token))
    assert resp.status_code == 201
    return resp.json()


def test_list_only_my_enrollments(client: TestClient, token: str, other_token: str) -> None:
    _enroll(client, token)
    _enroll(client, other_token, "advanced-typescript")

    resp = client.get("/v1/enrollments", headers=auth(token))
    assert resp.status_code == 200
    assert [e["course_id"] for e in resp.json()] == ["intro-to-react"]


def test_drop_enrollment(client: TestClient, token: str) -> None:
    enrollment = _enroll(client, token)

    resp = client.patch(
        f"/v1/enrollments/{enrollment['id']}", json={"status": "dropped"}, headers=auth(token)
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "dropped"
    assert resp.json()["dropped_at"] is not None
    # Dropped: enrolling again is allowed
    _enroll(client, token)


def test_invalid_transition_conflicts(client: TestClient, token: str) -> None:
    enrollment = _enroll(client, token)
    client.patch(f"/v1/enrollments/{enrollment['id']}", json={"status": "dropped"}, headers=auth(token))

    resp = client.patch(
        f"/v1/enrollments/{enrollment['id']}", json={"status": "completed"}, headers=auth(token)
    )
    assert resp.status_code == 409


def test_other_user_cannot_change_enrollment(
    client: TestClient, token: str, other_token: str
) -> None:
    enrollment = _enroll(client, token)
    resp = client.patch(
        f"/v1/enrollments/{enrollment['id']}", json={"status": "dropped"}, headers=auth(other_token)
    )
    assert resp.status_code == 403


def test_admin_can_change_any_enrollment(client: TestClient, token: str, admin_token: str) -> None:
    enrollment = _enroll(client, token)
    resp = client.patch(
        f"/v1/enrollments/{enrollment['id']}", json={"status": "dropped"}, headers=auth(admin_token)
    )
    assert resp.status_code == 200


def test_unknown_enrollment(client: TestClient, token: str) -> None:
    resp = client.patch("/v1/enrollments/missing", json={"status": "dropped"}, headers=auth(token))
    assert resp.status_code == 404


def test_unknown_status_value_rejected(client: TestClient, token: str) -> None:
    enrollment = _enroll(client, token)
    resp = client.patch(
        f"/v1/enrollments/{enrollment['id']}", json={"status": "paused"}, headers=auth(token)
    )
    assert resp.status_code == 422
