# GET /suggest/{query}: autocompletado de series por prefijo
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from server.api.caching.http_cache import maybe_not_modified
from server.api.deps import get_lookup_service, get_settings
from server.api.services.lookup import LookupService
from server.api.services.rate_limit import client_identity, rate_limit_headers
from server.api.settings import Settings

router = APIRouter()


@router.get("/suggest/{query}")
async def suggest_series(
    query: str,
    request: Request,
    response: Response,
    service: LookupService = Depends(get_lookup_service),
    settings: Settings = Depends(get_settings),
) -> Any:
    items, quota = await service.suggest(query, client_identity(request.headers))

    payload = [item.to_payload() for item in items]
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
