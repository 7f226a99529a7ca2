from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response

from backend.omdb_client import get_omdb_metrics_snapshot
from server.api.deps import Services, get_services
from server.api.services import metrics

router = APIRouter()


@router.get("/health")
def health() -> dict[str, Any]:
    return {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}


@router.get("/ready")
def ready(services: Services = Depends(get_services)) -> dict[str, Any]:
    """
    Readiness:
    - sin OMDB_API_KEY ninguna consulta puede funcionar -> 503.
    - incluye estado de la caché de respuestas (tamaño / capacidad / TTL).
    """
    cache_stats = services.cache.stats()
    has_credentials = bool(getattr(services.client, "has_credentials", True))

    if not has_credentials:
        raise HTTPException(
            status_code=503,
            detail={"ready": False, "issues": {"omdb": "OMDB_API_KEY not configured"}},
        )

    return {
        "ready": True,
        "cache": cache_stats,
        "ts": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/metrics")
def metrics_endpoint() -> Response:
    upstream = {f"omdb_{k}_total": v for k, v in get_omdb_metrics_snapshot().items()}
    body = metrics.render_prometheus(extra=upstream)
    return Response(content=body, media_type="text/plain; version=0.0.4")
