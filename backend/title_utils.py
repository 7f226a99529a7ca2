"""
backend/title_utils.py

Utilidades neutrales para títulos/queries de búsqueda:
- Validación + saneado de la entrada (título completo o prefijo de sugerencia).
- Normalización para claves de caché (lower + strip).
- Filtro de mensajes de error seguros para el cliente.

No hace logging ni I/O.
"""

from __future__ import annotations

import re
from typing import Final

from backend.errors import AppError, ValidationError

MAX_TITLE_LENGTH: Final[int] = 200

# Letras/dígitos ASCII, espacios y puntuación típica de títulos.
_ALLOWED_CHARS_RE: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z0-9\s\-'.:,&!?()]+$")

# Frases que se pueden mostrar al usuario aunque vengan del proveedor.
SAFE_MESSAGES: Final[tuple[str, ...]] = (
    "Title not found",
    "Movie not found",
    "Series not found",
    "Please search for a TV series",
    "Invalid IMDb ID",
    "Request limit reached",
)


def validate_title(title: object) -> str:
    """
    Valida y devuelve el título saneado (strip).

    Lanza ValidationError con un motivo legible si:
    - falta o no es str
    - queda vacío tras strip
    - supera MAX_TITLE_LENGTH
    - contiene caracteres fuera del conjunto permitido
    """
    if not title or not isinstance(title, str):
        raise ValidationError("Title parameter is required")

    trimmed = title.strip()
    if not trimmed:
        raise ValidationError("Title cannot be empty")

    if len(trimmed) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title too long (max {MAX_TITLE_LENGTH} characters)")

    if not _ALLOWED_CHARS_RE.match(trimmed):
        raise ValidationError("Title contains invalid characters")

    return trimmed


def normalize_title_for_lookup(title: str) -> str:
    return (title or "").strip().lower()


def safe_error_message(exc: BaseException, fallback: str, *, debug: bool = False) -> str:
    """
    Mensaje apto para el cliente.

    - debug=True: pasa el mensaje original.
    - AppError con always_safe (validación / rate limit): mensaje propio, pasa.
    - Resto: solo si contiene una frase de SAFE_MESSAGES; si no, `fallback`.
    """
    message = exc.public_message if isinstance(exc, AppError) else str(exc)

    if debug:
        return message or fallback

    if isinstance(exc, AppError) and exc.always_safe:
        return message or fallback

    if message and any(safe in message for safe in SAFE_MESSAGES):
        return message

    return fallback
