"""Tests for lesson progress endpoints, including the full course walkthrough."""

from __future__ import annotations

from fastapi.testclient import TestClient

from learnhub.main import app
from learnhub.services.persistence import InMemorySnapshotSlot
from tests.conftest import auth

COURSE = "intro-to-react"
LESSONS = ["react-m1-l1", "react-m1-l2", "react-m2-l1", "react-m2-l2"]


def _lesson_action(client: TestClient, token: str, lesson: str, action: str) -> dict:
    resp = client.post(
        f"/v1/progress/lessons/{lesson}/{action}", json={"course_id": COURSE}, headers=auth(token)
    )
    assert resp.status_code == 200
    return resp.json()


def test_start_lesson(client: TestClient, token: str) -> None:
    body = _lesson_action(client, token, LESSONS[0], "start")
    assert body["status"] == "in-progress"
    assert body["module_id"] == "react-m1"


def test_time_requires_started_lesson(client: TestClient, token: str) -> None:
    resp = client.post(f"/v1/progress/lessons/{LESSONS[0]}/time", json={"seconds": 30}, headers=auth(token))
    assert resp.status_code == 404


def test_time_accumulates(client: TestClient, token: str) -> None:
    _lesson_action(client, token, LESSONS[0], "start")
    client.post(f"/v1/progress/lessons/{LESSONS[0]}/time", json={"seconds": 30}, headers=auth(token))
    resp = client.post(
        f"/v1/progress/lessons/{LESSONS[0]}/time", json={"seconds": 45}, headers=auth(token)
    )
    assert resp.json()["time_spent"] == 75


def test_negative_time_rejected(client: TestClient, token: str) -> None:
    _lesson_action(client, token, LESSONS[0], "start")
    resp = client.post(
        f"/v1/progress/lessons/{LESSONS[0]}/time", json={"seconds": -5}, headers=auth(token)
    )
    assert resp.status_code == 422


def test_lesson_progress_not_found(client: TestClient, token: str) -> None:
    assert client.get(f"/v1/progress/lessons/{LESSONS[0]}", headers=auth(token)).status_code == 404
    assert client.get(f"/v1/progress/courses/{COURSE}", headers=auth(token)).status_code == 404


def test_complete_course_end_to_end(client: TestClient, token: str) -> None:
    client.post(f"/v1/courses/{COURSE}/enroll", headers=auth(token))

    for lesson, expected in zip(LESSONS[:3], (25, 50, 75)):
        _lesson_action(client, token, lesson, "complete")
        course = client.get(f"/v1/progress/courses/{COURSE}", headers=auth(token)).json()
        assert course["progress_percentage"] == expected
        assert course["status"] == "in-progress"

    _lesson_action(client, token, LESSONS[3], "complete")
    course = client.get(f"/v1/progress/courses/{COURSE}", headers=auth(token)).json()
    assert course["progress_percentage"] == 100
    assert course["status"] == "completed"
    assert course["completed_at"] is not None
    assert len(course["lessons"]) == 4
    assert [m["progress_percentage"] for m in course["modules"]] == [100, 100]

    enrollment = client.get(f"/v1/courses/{COURSE}/enrollment", headers=auth(token)).json()
    assert enrollment["status"] == "completed"
    assert enrollment["enrollment"]["certificate_issued"] is True

    overview = client.get("/v1/progress/overview", headers=auth(token)).json()
    assert overview["completed_courses"] == 1


def test_complete_twice_is_idempotent(client: TestClient, token: str) -> None:
    client.post(f"/v1/courses/{COURSE}/enroll", headers=auth(token))
    _lesson_action(client, token, LESSONS[0], "complete")
    _lesson_action(client, token, LESSONS[0], "complete")

    course = client.get(f"/v1/progress/courses/{COURSE}", headers=auth(token)).json()
    assert course["completed_lessons"] == 1
    assert course["progress_percentage"] == 25


def test_sync_progress(client: TestClient, token: str) -> None:
    resp = client.post("/v1/progress/sync", headers=auth(token))
    assert resp.status_code == 202
    assert resp.json()["last_sync_time"] is not None


def test_progress_survives_restart(token: str) -> None:
    """A second app run sharing the snapshot slot rehydrates the stores."""
    app.state.snapshot_slot = InMemorySnapshotSlot()

    with TestClient(app) as first:
        first.post(f"/v1/courses/{COURSE}/enroll", headers=auth(token))
        _lesson_action(first, token, LESSONS[0], "complete")
        first.put(f"/v1/favorites/{COURSE}", headers=auth(token))

    with TestClient(app) as second:
        course = second.get(f"/v1/progress/courses/{COURSE}", headers=auth(token)).json()
        assert course["progress_percentage"] == 25
        enrollments = second.get("/v1/enrollments", headers=auth(token)).json()
        assert [e["status"] for e in enrollments] == ["enrolled"]
        favorite = second.get(f"/v1/favorites/{COURSE}", headers=auth(token)).json()
        assert favorite["favorited"] is True
