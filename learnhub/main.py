from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnhub.api.admin import router as admin_router
from learnhub.api.courses import router as courses_router
from learnhub.api.dashboard import router as dashboard_router
from learnhub.api.enrollments import router as enrollments_router
from learnhub.api.favorites import router as favorites_router
from learnhub.api.health import router as health_router
from learnhub.api.metrics_endpoint import router as metrics_router
from learnhub.api.progress import router as progress_router
from learnhub.api.ratings import router as ratings_router
from learnhub.core.config import SETTINGS
from learnhub.core.logging import setup_logging
from learnhub.db.redis import lifespan_redis, redis_client
from learnhub.middleware.metrics import MetricsMiddleware
from learnhub.middleware.request_context import RequestContextMiddleware
from learnhub.services.persistence import InMemorySnapshotSlot, RedisSnapshotSlot, SnapshotSlot
from learnhub.services.platform import build_platform

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


def _snapshot_slot(app: FastAPI) -> SnapshotSlot:
    # An explicitly provided slot wins (tests share one across restarts)
    slot = getattr(app.state, "snapshot_slot", None)
    if slot is not None:
        return slot
    if redis_client is not None:
        return RedisSnapshotSlot(redis_client, prefix=SETTINGS.snapshot_prefix)
    return InMemorySnapshotSlot()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Redis comes up first and goes down last; the platform's snapshot
    # subscriptions are released before the connection closes.
    with lifespan_redis():
        platform = build_platform(SETTINGS, _snapshot_slot(app))
        app.state.platform = platform
        try:
            yield
        finally:
            platform.close()
            app.state.platform = None


app = FastAPI(
    title="learnhub",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext (outermost) -> Metrics -> CORS -> route
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(admin_router)
app.include_router(courses_router)
app.include_router(dashboard_router)
app.include_router(enrollments_router)
app.include_router(favorites_router)
app.include_router(progress_router)
app.include_router(ratings_router)

logger.info(
    "learnhub started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
