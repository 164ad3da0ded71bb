from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bayorder.api.middleware.request_context import get_request_id
from bayorder.application.live.notices import EntryConfigurationError
from bayorder.application.ports.identity import (
    AccountExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from bayorder.application.ports.store import (
    DocumentExistsError,
    DocumentNotFoundError,
    PreconditionFailedError,
    StoreError,
    StorePermissionError,
    StoreUnavailableError,
)
from bayorder.application.use_cases.access import CafeNotFoundError, PermissionDeniedError
from bayorder.application.use_cases.advance_order_status import (
    InvalidOrderTransitionError,
    OrderConflictError,
    OrderNotFoundError,
)
from bayorder.application.use_cases.cafe_settings import InvalidCafeDetailsError
from bayorder.application.use_cases.manage_menu import InvalidMenuItemError, MenuItemNotFoundError
from bayorder.application.use_cases.place_order import (
    EmptyCartError,
    IdempotencyReplayMismatchError,
    StaleIdempotencyKeyError,
    TableOccupiedError,
    UnknownTableError,
)
from bayorder.application.use_cases.purge_old_data import CallableError, CallableErrorCode
from bayorder.application.use_cases.service_requests import ServiceRequestNotFoundError
from bayorder.domain.cafe.entities import TableAlreadyExistsError, TableNotFoundError
from bayorder.domain.cart.cart import CartLineNotFoundError

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHENTICATED",
    403: "PERMISSION_DENIED",
    404: "NOT_FOUND",
    409: "CONFLICT",
}

_CALLABLE_STATUS = {
    CallableErrorCode.UNAUTHENTICATED: 401,
    CallableErrorCode.INVALID_ARGUMENT: 400,
    CallableErrorCode.NOT_FOUND: 404,
    CallableErrorCode.PERMISSION_DENIED: 403,
    CallableErrorCode.INTERNAL: 500,
}


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int, code: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.warning(
                "request_store_failure",
                extra={"path": request.url.path, "code": code, "error": str(exc)},
            )
        details = getattr(exc, "details", None)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _callable_error_handler(_: Request, exc: Exception) -> JSONResponse:
    callable_exc = cast(CallableError, exc)
    return _error_response(
        status_code=_CALLABLE_STATUS[callable_exc.code],
        code=callable_exc.code.value,
        message=str(callable_exc),
        details=callable_exc.details,
    )


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    return _error_response(
        status_code=http_exc.status_code,
        code=_HTTP_CODES.get(http_exc.status_code, "HTTP_ERROR"),
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": validation_exc.errors()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[Exception], int, str]] = [
        (CafeNotFoundError, 404, "CAFE_NOT_FOUND"),
        (OrderNotFoundError, 404, "ORDER_NOT_FOUND"),
        (MenuItemNotFoundError, 404, "MENU_ITEM_NOT_FOUND"),
        (ServiceRequestNotFoundError, 404, "SERVICE_REQUEST_NOT_FOUND"),
        (UnknownTableError, 404, "TABLE_NOT_FOUND"),
        (TableNotFoundError, 404, "TABLE_NOT_FOUND"),
        (CartLineNotFoundError, 404, "CART_LINE_NOT_FOUND"),
        (DocumentNotFoundError, 404, "NOT_FOUND"),
        (PermissionDeniedError, 403, "PERMISSION_DENIED"),
        (StorePermissionError, 403, "PERMISSION_DENIED"),
        (InvalidCredentialsError, 401, "INVALID_CREDENTIALS"),
        (InvalidTokenError, 401, "UNAUTHENTICATED"),
        (TableOccupiedError, 409, "TABLE_OCCUPIED"),
        (IdempotencyReplayMismatchError, 409, "IDEMPOTENCY_KEY_REPLAY_DIFFERENT_PAYLOAD"),
        (StaleIdempotencyKeyError, 409, "IDEMPOTENCY_KEY_EXPIRED"),
        (InvalidOrderTransitionError, 409, "INVALID_ORDER_TRANSITION"),
        (OrderConflictError, 409, "CONFLICT"),
        (TableAlreadyExistsError, 409, "TABLE_ALREADY_EXISTS"),
        (AccountExistsError, 409, "ACCOUNT_EXISTS"),
        (DocumentExistsError, 409, "CONFLICT"),
        (PreconditionFailedError, 409, "CONFLICT"),
        (EmptyCartError, 400, "EMPTY_CART"),
        (InvalidMenuItemError, 400, "INVALID_MENU_ITEM"),
        (InvalidCafeDetailsError, 400, "INVALID_CAFE_DETAILS"),
        (EntryConfigurationError, 400, "INVALID_ENTRY"),
        (StoreUnavailableError, 503, "STORE_UNAVAILABLE"),
        (StoreError, 503, "STORE_ERROR"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(CallableError, _callable_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
