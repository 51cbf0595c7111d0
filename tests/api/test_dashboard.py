from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth


def test_dashboard_for_new_user(client: TestClient, token: str) -> None:
    resp = client.get("/v1/dashboard", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["user_id"] == "test-user"
    assert body["total_courses_enrolled"] == 0
    assert body["current_streak"] == 0
    assert body["recent_activity"] == []


def test_dashboard_after_activity(client: TestClient, token: str) -> None:
    client.post("/v1/courses/intro-to-react/enroll", headers=auth(token))
    client.post(
        "/v1/progress/lessons/react-m1-l1/start", json={"course_id": "intro-to-react"}, headers=auth(token)
    )
    client.post("/v1/progress/lessons/react-m1-l1/time", json={"seconds": 120}, headers=auth(token))
    client.post(
        "/v1/progress/lessons/react-m1-l1/complete",
        json={"course_id": "intro-to-react"},
        headers=auth(token),
    )

    body = client.get("/v1/dashboard", headers=auth(token)).json()
    assert body["total_courses_enrolled"] == 1
    assert body["courses_in_progress"] == 1
    assert body["total_time_spent"] == 120
    assert body["current_streak"] == 1
    assert "React" in body["favorite_subjects"]
    assert [a["type"] for a in body["recent_activity"]] == ["lesson_completed", "course_enrolled"]


def test_activity_feed_is_per_user(client: TestClient, token: str, other_token: str) -> None:
    client.post("/v1/courses/intro-to-react/enroll", headers=auth(token))
    client.put("/v1/ratings/intro-to-react", json={"rating": 5}, headers=auth(other_token))

    mine = client.get("/v1/activity", headers=auth(token)).json()
    assert [a["type"] for a in mine] == ["course_enrolled"]
    theirs = client.get("/v1/activity?limit=1", headers=auth(other_token)).json()
    assert theirs[0]["metadata"] == {"rating": 5, "review": None}


def test_recommendations_exclude_enrolled(client: TestClient, token: str) -> None:
    client.post("/v1/courses/intro-to-react/enroll", headers=auth(token))

    resp = client.get("/v1/recommendations", headers=auth(token))
    assert resp.status_code == 200
    recs = resp.json()
    assert [r["course_id"] for r in recs] == ["advanced-typescript"]
    assert recs[0]["reason"] == "skill_progression"
