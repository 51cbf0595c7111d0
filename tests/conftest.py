from __future__ import annotations

import os
from collections.abc import Iterator

# Settings are read at import time; pin the test environment first.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SIMULATED_LATENCY_MS", "0")
os.environ["REDIS_URL"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from learnhub.main import app  # noqa: E402
from learnhub.models.ids import CourseId, LessonId, ModuleId  # noqa: E402
from learnhub.models.progress import CourseOutline, ModuleOutline  # noqa: E402
from learnhub.services import token_service  # noqa: E402
from learnhub.services.backend import SimulatedBackend  # noqa: E402
from learnhub.services.enrollment_store import EnrollmentStore  # noqa: E402
from learnhub.services.progress_store import ProgressStore  # noqa: E402

# 2023-11-14T22:13:20Z
START_TS = 1_700_000_000


class FakeClock:
    """Injectable clock: returns a fixed Unix time until advanced."""

    def __init__(self, now: int = START_TS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_snapshot_slot() -> Iterator[None]:
    """Each test app run gets a fresh in-memory slot unless the test sets one."""
    app.state.snapshot_slot = None
    yield
    app.state.snapshot_slot = None


@pytest.fixture
def client() -> Iterator[TestClient]:
    # Entering the client runs the lifespan, which builds a fresh platform
    with TestClient(app) as c:
        yield c


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def enrollment_store(clock: FakeClock) -> EnrollmentStore:
    return EnrollmentStore(SimulatedBackend(), clock=clock)


@pytest.fixture
def progress_store(clock: FakeClock) -> ProgressStore:
    return ProgressStore(SimulatedBackend(), clock=clock)


def four_lesson_outline(course_id: str = "c1") -> CourseOutline:
    """c1: m1 = l1, l2; m2 = l3, l4."""
    return CourseOutline(
        course_id=CourseId(course_id),
        modules=(
            ModuleOutline(module_id=ModuleId("m1"), lesson_ids=(LessonId("l1"), LessonId("l2"))),
            ModuleOutline(module_id=ModuleId("m2"), lesson_ids=(LessonId("l3"), LessonId("l4"))),
        ),
    )


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token() -> str:
    """Token with default role (user)."""
    return mint_token()


@pytest.fixture
def other_token() -> str:
    return mint_token(username="other-user")


@pytest.fixture
def admin_token() -> str:
    """Token with admin role."""
    return mint_token(username="test-admin", roles=["admin"])
