from __future__ import annotations

"""
backend/errors.py

Taxonomía de errores del servicio.

Cada error lleva:
- status_code: status HTTP al que se traduce en el borde HTTP.
- kind: etiqueta estable (logs / métricas / tests).
- public_message: texto pensado para el usuario (puede no ser seguro; el filtro
  de mensajes seguros vive en backend.title_utils.safe_error_message).

Propagación:
- ValidationError y RateLimited cortan antes de cualquier I/O.
- NotFound / UpstreamUnavailable solo los lanza el adaptador OMDb.
"""

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from server.api.services.rate_limit import RateLimitResult


class AppError(Exception):
    status_code: ClassVar[int] = 500
    kind: ClassVar[str] = "unexpected"
    # Mensajes generados por nosotros (no por el proveedor): siempre seguros.
    always_safe: ClassVar[bool] = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.public_message = message


class ValidationError(AppError):
    status_code = 400
    kind = "validation"
    always_safe = True


class RateLimited(AppError):
    status_code = 429
    kind = "rate_limited"
    always_safe = True

    def __init__(self, result: "RateLimitResult", message: str = "Too many requests. Please try again later.") -> None:
        super().__init__(message)
        self.result = result

    @property
    def retry_after_seconds(self) -> int:
        return int(self.result.retry_after_seconds or 0)


class NotFound(AppError):
    status_code = 404
    kind = "not_found"


class WrongMediaType(AppError):
    status_code = 400
    kind = "wrong_media_type"

    def __init__(self, message: str = "Please search for a TV series") -> None:
        super().__init__(message)


class UpstreamUnavailable(AppError):
    status_code = 502
    kind = "upstream_unavailable"


class Unexpected(AppError):
    status_code = 500
    kind = "unexpected"
