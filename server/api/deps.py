from __future__ import annotations

"""
Servicios de larga vida (uno por app) + dependencias FastAPI.

La caché, el limiter y el cliente OMDb se construyen UNA vez en create_app()
y viajan en `app.state.services`. Nada los lee desde globals de módulo: los
tests montan su propio Services (o usan dependency_overrides).
"""

from dataclasses import dataclass

from fastapi import Request

from backend.omdb_client import OmdbClient
from server.api.caching.response_cache import ResponseCache
from server.api.services.lookup import LookupService, UpstreamClient
from server.api.services.rate_limit import QuotaClass, RateLimitConfig, RateLimiter
from server.api.settings import Settings


@dataclass
class Services:
    settings: Settings
    client: UpstreamClient
    cache: ResponseCache
    limiter: RateLimiter
    lookup: LookupService


def search_quota(settings: Settings) -> QuotaClass:
    return QuotaClass(
        name="search",
        config=RateLimitConfig(
            max_requests=settings.rate_limit_search_max,
            window_seconds=settings.rate_limit_search_window_seconds,
        ),
    )


def suggest_quota(settings: Settings) -> QuotaClass:
    return QuotaClass(
        name="suggest",
        config=RateLimitConfig(
            max_requests=settings.rate_limit_suggest_max,
            window_seconds=settings.rate_limit_suggest_window_seconds,
        ),
    )


def build_omdb_client(settings: Settings) -> OmdbClient:
    return OmdbClient(
        api_key=settings.omdb_api_key,
        base_url=settings.omdb_base_url,
        timeout_seconds=settings.omdb_http_timeout_seconds,
        retry_total=settings.omdb_http_retry_total,
        retry_backoff_factor=settings.omdb_http_retry_backoff_factor,
        user_agent=settings.omdb_http_user_agent,
        pool_size=settings.omdb_http_max_concurrency,
    )


def build_services(
    settings: Settings,
    *,
    client: UpstreamClient | None = None,
    cache: ResponseCache | None = None,
    limiter: RateLimiter | None = None,
) -> Services:
    client = client if client is not None else build_omdb_client(settings)
    cache = cache if cache is not None else ResponseCache(
        max_entries=settings.response_cache_max_entries,
        ttl_seconds=settings.response_cache_ttl_seconds,
    )
    limiter = limiter if limiter is not None else RateLimiter(
        cleanup_interval_seconds=settings.rate_limit_cleanup_interval_seconds,
    )
    lookup = LookupService(
        client=client,
        cache=cache,
        limiter=limiter,
        search_quota=search_quota(settings),
        suggest_quota=suggest_quota(settings),
        suggest_max_results=settings.suggest_max_results,
        max_concurrency=settings.omdb_http_max_concurrency,
    )
    return Services(settings=settings, client=client, cache=cache, limiter=limiter, lookup=lookup)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(request: Request) -> Settings:
    return get_services(request).settings


def get_lookup_service(request: Request) -> LookupService:
    return get_services(request).lookup
