"""Health and readiness endpoints.

  /health (liveness): the process can respond.  Always 200; the body
    reports per-dependency status so a degraded Redis is visible without
    the orchestrator restarting the container.

  /ready (readiness): the platform has been built by the lifespan and
    can serve requests.  503 until then.

Redis is optional: without it, snapshots are kept in process memory and
the service still serves traffic.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from learnhub.db.redis import ping, redis_client

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_client is not None:
        if ping(redis_client):
            checks["redis"] = "ok"
        else:
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    platform = getattr(request.app.state, "platform", None)
    if platform is not None:
        checks["enrollment_store"] = "error" if platform.enrollments.error else "ok"
        checks["progress_store"] = "error" if platform.progress.error else "ok"

    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready(request: Request) -> Response:
    if getattr(request.app.state, "platform", None) is None:
        return Response(status_code=503)
    return Response(status_code=200)
