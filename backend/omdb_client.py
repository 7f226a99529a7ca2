from __future__ import annotations

"""
backend/omdb_client.py

Cliente OMDb (adaptador del proveedor externo).

🧠 Principios
-------------
1) Frontera tipada:
   - Este módulo es el ÚNICO que mira el texto de error de OMDb.
   - Cada payload se clasifica en un OutcomeKind (ok / not_found /
     rate_limited / invalid_key / error) y el resto del sistema solo ve
     modelos (backend.models) o excepciones (backend.errors).
   - La detección de "not found" es por substring (case-insensitive) porque
     OMDb no expone códigos de error. Es frágil: si OMDb cambia textos,
     el cambio se hace aquí y solo aquí.

2) Transporte:
   - requests.Session compartida (pooling) + Retry de urllib3 (429/5xx).
   - El timeout es del transporte; el core no impone timeouts propios.
   - Llamadas bloqueantes: el servidor las ejecuta en threads (asyncio.to_thread).
   - Semaphore por cliente: como mucho pool_size requests en vuelo.

3) Sin API key:
   - Es un fallo de configuración => UpstreamUnavailable sin tocar la red.

API pública
-----------
- OmdbClient.get_title_metadata(title)
- OmdbClient.get_season_episodes(series_id, season_number)
- OmdbClient.search_by_prefix(query, media_type="series")
- classify_payload(data)
- get_omdb_metrics_snapshot / reset_omdb_metrics
"""

import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from backend.errors import NotFound, UpstreamUnavailable
from backend.models import Episode, SearchItem, Season, TitleMetadata

logger = logging.getLogger("seasonrank.omdb")

DEFAULT_BASE_URL: Final[str] = "https://www.omdbapi.com/"
DEFAULT_USER_AGENT: Final[str] = "season-rank/1.0"


# ============================================================
# MÉTRICAS (contadores in-process)
# ============================================================

_METRICS_LOCK = threading.Lock()
_METRICS: dict[str, int] = {
    "http_requests": 0,
    "http_failures": 0,
    "not_found": 0,
    "provider_errors": 0,
    "rate_limit_hits": 0,
    "invalid_key": 0,
    "missing_key": 0,
}


def _m_inc(key: str, delta: int = 1) -> None:
    with _METRICS_LOCK:
        _METRICS[key] = _METRICS.get(key, 0) + delta


def get_omdb_metrics_snapshot() -> dict[str, int]:
    with _METRICS_LOCK:
        return dict(_METRICS)


def reset_omdb_metrics() -> None:
    with _METRICS_LOCK:
        for k in _METRICS:
            _METRICS[k] = 0


# ============================================================
# CLASIFICACIÓN DE PAYLOADS
# ============================================================


class OutcomeKind(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    INVALID_KEY = "invalid_key"
    ERROR = "error"


@dataclass(frozen=True)
class OmdbOutcome:
    kind: OutcomeKind
    data: Mapping[str, Any]
    error: str | None = None


def classify_payload(data: Mapping[str, Any]) -> OmdbOutcome:
    """
    Cualquier payload con campo Error (o Response=False) es un fallo.

    Subtipos:
    - "not found" (case-insensitive)  -> NOT_FOUND
    - "Request limit reached!"        -> RATE_LIMITED
    - "Invalid API key!" / "api key"  -> INVALID_KEY
    - resto                           -> ERROR
    """
    err = data.get("Error")
    response_flag = str(data.get("Response", "True")).strip().lower()

    if not err and response_flag != "false":
        return OmdbOutcome(kind=OutcomeKind.OK, data=data)

    text = str(err).strip() if err else "Unknown OMDb error"
    lowered = text.lower()

    if "not found" in lowered:
        return OmdbOutcome(kind=OutcomeKind.NOT_FOUND, data=data, error=text)
    if "request limit reached" in lowered:
        return OmdbOutcome(kind=OutcomeKind.RATE_LIMITED, data=data, error=text)
    if "api key" in lowered:
        return OmdbOutcome(kind=OutcomeKind.INVALID_KEY, data=data, error=text)
    return OmdbOutcome(kind=OutcomeKind.ERROR, data=data, error=text)


# ============================================================
# AUX: parsing defensivo
# ============================================================


def _safe_int(value: object) -> int | None:
    try:
        if value is None:
            return None
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def _str_or_none(value: object) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _parse_title(data: Mapping[str, Any]) -> TitleMetadata:
    external_id = _str_or_none(data.get("imdbID"))
    if external_id is None:
        raise UpstreamUnavailable("OMDb returned a title without imdbID")

    return TitleMetadata(
        external_id=external_id,
        title=_str_or_none(data.get("Title")) or "",
        media_type=_str_or_none(data.get("Type")) or "",
        year=_str_or_none(data.get("Year")),
        poster_url=_str_or_none(data.get("Poster")),
        synopsis=_str_or_none(data.get("Plot")),
        total_seasons=max(0, _safe_int(data.get("totalSeasons")) or 0),
    )


def _parse_season(data: Mapping[str, Any], season_number: int) -> Season:
    raw_episodes = data.get("Episodes")
    if raw_episodes is None:
        raw_episodes = []
    if not isinstance(raw_episodes, list):
        raise UpstreamUnavailable("OMDb returned a malformed season payload")

    episodes: list[Episode] = []
    for idx, item in enumerate(raw_episodes, start=1):
        if not isinstance(item, Mapping):
            continue
        number = _safe_int(item.get("Episode"))
        rating = item.get("imdbRating")
        episodes.append(
            Episode(
                episode_number=number if number is not None and number >= 1 else idx,
                title=_str_or_none(item.get("Title")) or "",
                rating="N/A" if rating is None else str(rating),
            )
        )
    return Season(season_number=season_number, episodes=tuple(episodes))


def _parse_search(data: Mapping[str, Any]) -> list[SearchItem]:
    raw = data.get("Search") or []
    if not isinstance(raw, list):
        raise UpstreamUnavailable("OMDb returned a malformed search payload")

    out: list[SearchItem] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        external_id = _str_or_none(item.get("imdbID"))
        if external_id is None:
            continue
        out.append(
            SearchItem(
                title=_str_or_none(item.get("Title")) or "",
                year=_str_or_none(item.get("Year")),
                external_id=external_id,
                media_type=_str_or_none(item.get("Type")) or "",
                poster_url=_str_or_none(item.get("Poster")),
            )
        )
    return out


# ============================================================
# CLIENTE
# ============================================================


class OmdbClient:
    """
    Cliente síncrono y thread-safe (la Session se crea una vez, bajo lock).
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
        retry_total: int = 2,
        retry_backoff_factor: float = 0.5,
        user_agent: str = DEFAULT_USER_AGENT,
        pool_size: int = 8,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = (api_key or "").strip() or None
        self._base_url = (base_url or "").strip() or DEFAULT_BASE_URL
        self._timeout_seconds = max(0.5, float(timeout_seconds))
        self._retry_total = max(0, int(retry_total))
        self._retry_backoff_factor = max(0.0, float(retry_backoff_factor))
        self._user_agent = (user_agent or "").strip() or DEFAULT_USER_AGENT
        self._pool_size = max(1, int(pool_size))
        # requests en vuelo <= tamaño del pool (si no, urllib3 descarta conexiones)
        self._http_slots = threading.BoundedSemaphore(self._pool_size)

        self._session = session
        self._session_lock = threading.Lock()

    @property
    def has_credentials(self) -> bool:
        return self._api_key is not None

    def _get_session(self) -> requests.Session:
        if self._session is not None:
            return self._session

        with self._session_lock:
            if self._session is not None:
                return self._session

            session = requests.Session()
            retries = Retry(
                total=self._retry_total,
                backoff_factor=self._retry_backoff_factor,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=("GET",),
                raise_on_status=False,
                respect_retry_after_header=True,
            )
            adapter = HTTPAdapter(
                max_retries=retries,
                pool_connections=self._pool_size,
                pool_maxsize=self._pool_size,
            )
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            session.headers.update(
                {
                    "User-Agent": self._user_agent,
                    "Accept": "application/json,text/plain,*/*",
                }
            )
            self._session = session
            return session

    def close(self) -> None:
        with self._session_lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    # --------------------------------------------------------
    # transporte
    # --------------------------------------------------------

    def _request(self, params: Mapping[str, object]) -> Mapping[str, Any]:
        """
        GET a OMDb + clasificación. Devuelve el payload solo si es OK.

        Lanza:
        - UpstreamUnavailable: sin API key, red, status != 200, JSON inválido,
          rate limit del proveedor, API key inválida, error declarado.
        - NotFound: el proveedor confirma que no existe.
        """
        if self._api_key is None:
            _m_inc("missing_key", 1)
            logger.warning("OMDB_API_KEY no configurada; OMDb no disponible")
            raise UpstreamUnavailable("OMDb API key not configured")

        req_params: dict[str, str] = {str(k): str(v) for k, v in params.items()}
        logger.debug("omdb_request", extra={"params": dict(req_params)})
        req_params["apikey"] = self._api_key

        _m_inc("http_requests", 1)
        try:
            with self._http_slots:
                resp = self._get_session().get(
                    self._base_url, params=req_params, timeout=self._timeout_seconds
                )
        except RequestException as exc:
            _m_inc("http_failures", 1)
            # la URL de la excepción lleva apikey: solo el tipo
            logger.warning("OMDb HTTP error: %s", type(exc).__name__)
            raise UpstreamUnavailable(f"OMDb request failed: {type(exc).__name__}") from exc

        if resp.status_code != 200:
            _m_inc("http_failures", 1)
            logger.warning("OMDb status != 200: %s", resp.status_code)
            raise UpstreamUnavailable(f"OMDb responded with status {resp.status_code}")

        try:
            data = resp.json()
        except (ValueError, json.JSONDecodeError) as exc:
            _m_inc("http_failures", 1)
            logger.warning("OMDb invalid JSON: %r", exc)
            raise UpstreamUnavailable("OMDb returned invalid JSON") from exc

        if not isinstance(data, Mapping):
            _m_inc("http_failures", 1)
            raise UpstreamUnavailable("OMDb returned JSON that is not an object")

        outcome = classify_payload(data)
        if outcome.kind is OutcomeKind.OK:
            return data

        error = outcome.error or "Unknown OMDb error"
        if outcome.kind is OutcomeKind.NOT_FOUND:
            _m_inc("not_found", 1)
            logger.debug("OMDb not found: %s", error)
            raise NotFound(error)

        if outcome.kind is OutcomeKind.RATE_LIMITED:
            _m_inc("rate_limit_hits", 1)
        elif outcome.kind is OutcomeKind.INVALID_KEY:
            _m_inc("invalid_key", 1)
        else:
            _m_inc("provider_errors", 1)
        logger.warning("OMDb error (%s): %s", outcome.kind.value, error)
        raise UpstreamUnavailable(error)

    # --------------------------------------------------------
    # operaciones
    # --------------------------------------------------------

    def get_title_metadata(self, title: str) -> TitleMetadata:
        data = self._request({"t": title})
        return _parse_title(data)

    def get_season_episodes(self, series_id: str, season_number: int) -> Season:
        data = self._request({"i": series_id, "Season": int(season_number)})
        return _parse_season(data, int(season_number))

    def search_by_prefix(self, query: str, *, media_type: str = "series", page: int = 1) -> list[SearchItem]:
        data = self._request({"s": query, "type": media_type, "page": int(page)})
        return _parse_search(data)
