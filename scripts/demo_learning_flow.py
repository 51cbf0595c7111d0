"""Demo: enroll, work through a course and read the dashboard via TestClient.

Run with:
    python scripts/demo_learning_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from learnhub.main import app
from learnhub.services import token_service

COURSE = "intro-to-react"


def main() -> None:
    token = token_service.create_access_token(sub="demo-learner")
    headers = {"Authorization": f"Bearer {token}"}

    with TestClient(app) as client:
        # ── Step 1: browse the catalog ──────────────────────────────
        r = client.get("/v1/courses", headers=headers)
        print(f"1. GET  /v1/courses                → {r.status_code}  ({len(r.json())} courses)")

        # ── Step 2: enroll ──────────────────────────────────────────
        r = client.post(f"/v1/courses/{COURSE}/enroll", headers=headers)
        print(f"2. POST /v1/courses/{COURSE}/enroll → {r.status_code}")

        # ── Step 3: complete every lesson ───────────────────────────
        detail = client.get(f"/v1/courses/{COURSE}", headers=headers).json()
        for module in detail["modules"]:
            for lesson in module["lessons"]:
                client.post(
                    f"/v1/progress/lessons/{lesson['id']}/start",
                    json={"course_id": detail["id"]},
                    headers=headers,
                )
                client.post(
                    f"/v1/progress/lessons/{lesson['id']}/time",
                    json={"seconds": 300},
                    headers=headers,
                )
                r = client.post(
                    f"/v1/progress/lessons/{lesson['id']}/complete",
                    json={"course_id": detail["id"]},
                    headers=headers,
                )
                print(f"3. complete {lesson['id']:<14} → {r.status_code}")

        progress = client.get(f"/v1/progress/courses/{detail['id']}", headers=headers).json()
        print(f"   course progress: {progress['progress_percentage']}% ({progress['status']})")

        # ── Step 4: rate and read the dashboard ─────────────────────
        r = client.put(
            f"/v1/ratings/{detail['id']}",
            json={"rating": 5, "review": "Clear and well paced"},
            headers=headers,
        )
        print(f"4. PUT  /v1/ratings/{detail['id']} → {r.status_code}  verified={r.json()['is_verified_purchase']}")

        dashboard = client.get("/v1/dashboard", headers=headers).json()
        print(
            "5. dashboard: "
            f"completed={dashboard['courses_completed']} "
            f"certificates={dashboard['certificates_earned']} "
            f"time={dashboard['total_time_spent']}s "
            f"streak={dashboard['current_streak']}"
        )


if __name__ == "__main__":
    main()
