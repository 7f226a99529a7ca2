from __future__ import annotations

"""
server/api/middleware/request_id.py

Log de acceso + correlación:
- X-Request-ID: se respeta el del cliente solo si es corto y limpio
  ([A-Za-z0-9._-], <= 64); si no, uuid4 nuevo. Siempre vuelve en la respuesta.
- Cada request deja una línea con la identidad que usa el rate limiter
  (X-Forwarded-For / X-Real-IP), así un 429 se puede cruzar con su origen.
- Las respuestas 5xx se registran en WARNING.
"""

import logging
import re
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from server.api.logging_config import configure_logging
from server.api.services import metrics
from server.api.services.rate_limit import client_identity
from server.api.settings import Settings

CallNext = Callable[[Request], Awaitable[Response]]
Middleware = Callable[[Request, CallNext], Awaitable[Response]]

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._\-]{1,64}$")


def resolve_request_id(raw: str | None) -> str:
    value = (raw or "").strip()
    if value and _REQUEST_ID_RE.match(value):
        return value
    return uuid.uuid4().hex


def build_request_id_middleware(settings: Settings) -> Middleware:
    logger = configure_logging(settings)

    async def middleware(request: Request, call_next: CallNext) -> Response:
        started = time.monotonic()
        rid = resolve_request_id(request.headers.get("x-request-id"))
        request.state.request_id = rid
        metrics.inc("http_requests_total", 1)

        status = 500
        try:
            response = await call_next(request)
            status = int(getattr(response, "status_code", 500))
            response.headers["X-Request-ID"] = rid
            return response
        finally:
            level = logging.WARNING if status >= 500 else logging.INFO
            logger.log(
                level,
                "request",
                extra={
                    "request_id": rid,
                    "client": client_identity(request.headers),
                    "method": request.method,
                    "path": request.url.path,
                    "status": status,
                    "duration_ms": int((time.monotonic() - started) * 1000),
                },
            )

    return middleware
