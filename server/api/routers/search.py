# GET /search/{title}: serie + temporadas ordenadas por rating medio
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from server.api.caching.http_cache import maybe_not_modified
from server.api.deps import get_lookup_service, get_settings
from server.api.services.lookup import LookupService
from server.api.services.rate_limit import client_identity, rate_limit_headers
from server.api.settings import Settings

router = APIRouter()


@router.get("/search/{title}")
async def search_title(
    title: str,
    request: Request,
    response: Response,
    service: LookupService = Depends(get_lookup_service),
    settings: Settings = Depends(get_settings),
) -> Any:
    ranked, quota = await service.lookup(title, client_identity(request.headers))

    payload = ranked.to_payload()
    response.headers.update(rate_limit_headers(quota))
    if maybe_not_modified(
        request=request,
        response=response,
        payload=payload,
        s_maxage=settings.http_cache_s_maxage,
        stale_while_revalidate=settings.http_cache_stale_while_revalidate,
    ):
        return Response(status_code=304, headers=dict(response.headers))
    return payload
