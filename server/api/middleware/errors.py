# exception handlers (AppError -> JSON seguro; resto -> 500 con error_id)
from __future__ import annotations

import uuid
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from backend.errors import AppError, RateLimited
from backend.title_utils import safe_error_message
from server.api.logging_config import configure_logging
from server.api.services import metrics
from server.api.services.rate_limit import rate_limit_headers
from server.api.settings import Settings

_DEFAULT_FALLBACK = "Request failed"
_FALLBACKS: dict[str, str] = {
    "/search": "Failed to search for show",
    "/suggest": "Failed to fetch suggestions",
}


def fallback_message_for(path: str) -> str:
    for prefix, message in _FALLBACKS.items():
        if path == prefix or path.startswith(prefix + "/"):
            return message
    return _DEFAULT_FALLBACK


def build_app_error_handler(settings: Settings):
    logger = configure_logging(settings)

    async def handler(request: Request, exc: AppError) -> JSONResponse:
        req_id = getattr(request.state, "request_id", None)
        path = request.url.path

        message = safe_error_message(exc, fallback_message_for(path), debug=settings.debug)

        if exc.status_code >= 500:
            metrics.inc("http_errors_5xx_total", 1)
            logger.warning(
                "app_error",
                extra={"request_id": req_id, "path": path, "kind": exc.kind, "status": exc.status_code},
            )

        payload: dict[str, Any] = {"error": message}
        if isinstance(req_id, str) and req_id:
            payload["request_id"] = req_id

        headers: dict[str, str] = {}
        if isinstance(exc, RateLimited):
            headers.update(rate_limit_headers(exc.result))

        return JSONResponse(status_code=exc.status_code, content=payload, headers=headers)

    return handler


def build_exception_handler(settings: Settings):
    logger = configure_logging(settings)

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        error_id = uuid.uuid4().hex
        req_id = getattr(request.state, "request_id", None)

        logger.exception(
            "unhandled_exception",
            extra={"error_id": error_id, "request_id": req_id, "path": request.url.path},
        )
        metrics.inc("http_errors_5xx_total", 1)

        payload: dict[str, Any] = {
            "error": fallback_message_for(request.url.path),
            "detail": "Internal Server Error",
            "error_id": error_id,
        }
        if isinstance(req_id, str) and req_id:
            payload["request_id"] = req_id

        return JSONResponse(status_code=500, content=payload)

    return handler
