# Cache-Control/ETag/304 helpers para respuestas JSON
from __future__ import annotations

import hashlib
import json
from typing import Any, Final

from fastapi import Request, Response

_ETAG_PREFIX: Final[str] = 'W/"'


def cache_control_value(*, s_maxage: int, stale_while_revalidate: int) -> str:
    return f"public, s-maxage={max(0, int(s_maxage))}, stale-while-revalidate={max(0, int(stale_while_revalidate))}"


def etag_for_payload(payload: Any) -> str:
    """ETag débil estable: hash del JSON canónico (claves ordenadas)."""
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    digest = hashlib.sha1(body.encode("utf-8")).hexdigest()[:20]
    return f'{_ETAG_PREFIX}{digest}"'


def _etag_matches(if_none_match: str, etag: str) -> bool:
    if if_none_match == "*":
        return True
    candidates = [c.strip() for c in if_none_match.split(",")]
    return etag in candidates


def maybe_not_modified(
    *,
    request: Request,
    response: Response,
    payload: Any,
    s_maxage: int,
    stale_while_revalidate: int,
) -> bool:
    """
    Aplica Cache-Control público + ETag y decide si devolver 304.

    Devuelve True si el caller debería cortar y responder 304.
    """
    etag = etag_for_payload(payload)
    response.headers["ETag"] = etag
    response.headers["Cache-Control"] = cache_control_value(
        s_maxage=s_maxage, stale_while_revalidate=stale_while_revalidate
    )

    inm = (request.headers.get("if-none-match") or "").strip()
    if inm and _etag_matches(inm, etag):
        response.status_code = 304
        return True

    return False
