from __future__ import annotations

"""
server/api/services/lookup.py

Orquestación de las dos consultas públicas:

lookup(title):
  validar -> rate limit (search) -> título (cache/OMDb) -> tipo == series
  -> N temporadas en paralelo (cache/OMDb) -> ranking

suggest(query):
  validar -> rate limit (suggest) -> búsqueda por prefijo (cache/OMDb)
  -> solo series -> recorte a suggest_max_results

Modelo de concurrencia:
- Las llamadas a OMDb son bloqueantes (requests) y van a threads con
  asyncio.to_thread; son los únicos puntos de suspensión. Como mucho
  max_concurrency (OMDB_HTTP_MAX_CONCURRENCY) de ellas en vuelo a la vez.
- Cache y limiter se tocan desde el event loop, en pasos síncronos.
- Fan-out de temporadas: todas las tareas corren hasta terminar; después se
  propaga el primer fallo (orden de temporada). Nunca hay ranking parcial.
  Las tareas que sí terminan bien dejan su temporada en caché.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

from backend.errors import AppError, NotFound, RateLimited, Unexpected, WrongMediaType
from backend.models import RankedSeries, SearchItem, Season, Series, TitleMetadata
from backend.season_ranking import rank
from backend.title_utils import validate_title
from server.api.caching.keys import season_key, suggest_key, title_key
from server.api.caching.response_cache import ResponseCache
from server.api.services import metrics
from server.api.services.rate_limit import QuotaClass, RateLimiter, RateLimitResult

logger = logging.getLogger("seasonrank_api")

T = TypeVar("T")

DEFAULT_SUGGEST_MAX_RESULTS = 8
DEFAULT_MAX_CONCURRENCY = 8


class UpstreamClient(Protocol):
    def get_title_metadata(self, title: str) -> TitleMetadata: ...

    def get_season_episodes(self, series_id: str, season_number: int) -> Season: ...

    def search_by_prefix(self, query: str, *, media_type: str = "series", page: int = 1) -> list[SearchItem]: ...


class LookupService:
    def __init__(
        self,
        *,
        client: UpstreamClient,
        cache: ResponseCache,
        limiter: RateLimiter,
        search_quota: QuotaClass,
        suggest_quota: QuotaClass,
        suggest_max_results: int = DEFAULT_SUGGEST_MAX_RESULTS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self.client = client
        self.cache = cache
        self.limiter = limiter
        self.search_quota = search_quota
        self.suggest_quota = suggest_quota
        self.suggest_max_results = max(1, int(suggest_max_results))
        self.max_concurrency = max(1, int(max_concurrency))
        # Cota de llamadas a OMDb en vuelo (threads del executor por defecto).
        # Semaphore de threads: se adquiere dentro del worker, no en el loop.
        self._upstream_slots = threading.BoundedSemaphore(self.max_concurrency)

    # --------------------------------------------------------
    # helpers
    # --------------------------------------------------------

    def _admit(self, quota: QuotaClass, identity: str) -> RateLimitResult:
        result = self.limiter.check_quota(quota, identity)
        if not result.admitted:
            raise RateLimited(result)
        return result

    def _call_upstream(self, fetch: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self._upstream_slots:
            return fetch(*args, **kwargs)

    async def _cached(self, key: str, fetch: Callable[..., T], *args: Any) -> T:
        """Read-through: solo se cachean fetches que terminan bien."""
        hit = self.cache.get(key)
        if hit is not None:
            return hit

        value = await asyncio.to_thread(self._call_upstream, fetch, *args)
        self.cache.set(key, value)
        return value

    async def _fetch_seasons(self, series: Series) -> list[Season]:
        tasks = [
            self._cached(
                season_key(series.series_id, n),
                self.client.get_season_episodes,
                series.series_id,
                n,
            )
            for n in range(1, series.total_seasons + 1)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        seasons: list[Season] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            seasons.append(result)
        return seasons

    # --------------------------------------------------------
    # operaciones
    # --------------------------------------------------------

    async def lookup(self, raw_title: object, identity: str) -> tuple[RankedSeries, RateLimitResult]:
        title = validate_title(raw_title)
        quota = self._admit(self.search_quota, identity)

        try:
            meta: TitleMetadata = await self._cached(title_key(title), self.client.get_title_metadata, title)
            if not meta.is_series:
                raise WrongMediaType()

            series = Series.from_metadata(meta)
            seasons = await self._fetch_seasons(series)
        except AppError as exc:
            metrics.inc("lookup_errors_total", 1)
            logger.info("lookup_failed", extra={"kind": exc.kind, "path": f"/search/{title}"})
            raise
        except Exception as exc:
            metrics.inc("lookup_errors_total", 1)
            logger.exception("lookup_unexpected")
            raise Unexpected(f"Unexpected lookup failure: {exc!r}") from exc

        ranked = rank(seasons)
        logger.debug(
            "lookup_ok series=%s seasons=%d", series.series_id, len(ranked)
        )
        return RankedSeries(series=series, ranked_seasons=tuple(ranked)), quota

    async def suggest(self, raw_query: object, identity: str) -> tuple[list[SearchItem], RateLimitResult]:
        query = validate_title(raw_query)
        quota = self._admit(self.suggest_quota, identity)

        key = suggest_key(query)
        items: tuple[SearchItem, ...] | None = self.cache.get(key)
        if items is None:
            try:
                found = await asyncio.to_thread(
                    self._call_upstream, self.client.search_by_prefix, query, media_type="series"
                )
            except NotFound:
                # "sin coincidencias" != fallo del proveedor
                found = []
            except AppError as exc:
                metrics.inc("lookup_errors_total", 1)
                logger.info("suggest_failed", extra={"kind": exc.kind})
                raise
            except Exception as exc:
                metrics.inc("lookup_errors_total", 1)
                logger.exception("suggest_unexpected")
                raise Unexpected(f"Unexpected suggest failure: {exc!r}") from exc

            items = tuple(item for item in found if item.is_series)
            self.cache.set(key, items)

        return list(items[: self.suggest_max_results]), quota
