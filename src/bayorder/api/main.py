from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from bayorder.api.deps import get_identity_provider, reset_dependencies
from bayorder.api.error_handling import register_exception_handlers
from bayorder.api.middleware.request_context import REQUEST_ID_HEADER, RequestContextMiddleware
from bayorder.api.routes.admin import router as admin_router
from bayorder.api.routes.auth import router as auth_router
from bayorder.api.routes.customer import router as customer_router
from bayorder.api.routes.functions import router as functions_router
from bayorder.api.routes.health import router as health_router
from bayorder.api.routes.menu import router as menu_router
from bayorder.api.routes.metrics import router as metrics_router
from bayorder.api.routes.owner import router as owner_router
from bayorder.api.ws.manager import ConnectionManager
from bayorder.api.ws.routes import router as ws_router
from bayorder.application.use_cases.sign_in import ensure_admin_account
from bayorder.infrastructure.observability.logging_config import configure_logging
from bayorder.infrastructure.observability.otel import configure_otel

logger = logging.getLogger("bayorder.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "route", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()
    if env in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "https://bay-order.vercel.app")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _route_template(request: Request) -> str:
    # route template, e.g. /v1/cafes/{cafe_id}
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - started) * 1000
            route = _route_template(request)
            REQUEST_COUNT.labels(method=method, route=route, status_code="500").inc()
            REQUEST_LATENCY.labels(method=method, route=route).observe(duration_ms / 1000)
            logger.exception(
                "request_error",
                extra={
                    "method": method,
                    "path": request.url.path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        route = _route_template(request)
        REQUEST_COUNT.labels(method=method, route=route, status_code=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, route=route).observe(duration_ms / 1000)
        logger.info(
            "request_complete",
            extra={
                "method": method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.ws_manager = ConnectionManager()
    ensure_admin_account(get_identity_provider())
    try:
        yield
    finally:
        reset_dependencies()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="BayOrder", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(auth_router)
    app.include_router(customer_router)
    app.include_router(menu_router)
    app.include_router(owner_router)
    app.include_router(admin_router)
    app.include_router(functions_router)
    app.include_router(ws_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()
