from __future__ import annotations

from fastapi import APIRouter, Response, status

from bayorder.api.deps import store_backend
from bayorder.infrastructure.db.session import ping_database
from bayorder.infrastructure.messaging.redis_connection import ping_redis, redis_url

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    checks: dict[str, bool] = {}
    if store_backend() == "postgres":
        checks["postgres"] = ping_database(timeout_seconds=1.0)
    if redis_url() is not None:
        checks["redis"] = ping_redis(timeout_seconds=1.0)

    if all(checks.values()):
        return {"status": "ok", "backend": store_backend()}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "backend": store_backend(), "checks": checks}
