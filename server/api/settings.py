# lectura de env vars + defaults
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# No sobre-escribimos env vars ya definidas (producción manda).
load_dotenv(override=False)

_TRUE_SET = {"1", "true", "t", "yes", "y", "on"}
_FALSE_SET = {"0", "false", "f", "no", "n", "off"}


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip()
    return val if val else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip().lower()
    if s in _TRUE_SET:
        return True
    if s in _FALSE_SET:
        return False
    return default


@dataclass(frozen=True)
class Settings:
    """
    Settings centralizados (env vars). Esto evita `os.getenv(...)` disperso.

    Notas importantes:
    - OMDB_API_KEY ausente no impide arrancar: las consultas fallan con
      UpstreamUnavailable y /ready lo reporta.
    - CORS: si CORS_ORIGINS="*" -> allow_credentials=False para compatibilidad browser.
    - DEBUG_MODE=1 deja pasar los mensajes de error originales al cliente.
    """

    log_level: str = "INFO"
    debug: bool = False

    cors_origins_raw: str = "*"
    cors_allow_credentials: bool = False

    gzip_min_size: int = 800

    omdb_api_key: str | None = None
    omdb_base_url: str = "https://www.omdbapi.com/"
    omdb_http_timeout_seconds: float = 10.0
    omdb_http_retry_total: int = 2
    omdb_http_retry_backoff_factor: float = 0.5
    omdb_http_user_agent: str = "season-rank/1.0"
    omdb_http_max_concurrency: int = 8

    response_cache_max_entries: int = 1000
    response_cache_ttl_seconds: float = 24 * 60 * 60

    rate_limit_search_max: int = 20
    rate_limit_search_window_seconds: float = 60.0
    rate_limit_suggest_max: int = 60
    rate_limit_suggest_window_seconds: float = 60.0
    rate_limit_cleanup_interval_seconds: float = 60.0

    suggest_max_results: int = 8

    http_cache_s_maxage: int = 3600
    http_cache_stale_while_revalidate: int = 86400

    def cors_allow_origins(self) -> list[str]:
        raw = self.cors_origins_raw.strip()
        if raw == "*":
            return ["*"]
        parts = [p.strip() for p in raw.split(",")]
        return [p for p in parts if p]

    @staticmethod
    def from_env() -> "Settings":
        cors_raw = _env_str("CORS_ORIGINS", "*")
        allow_origins = ["*"] if cors_raw.strip() == "*" else [p.strip() for p in cors_raw.split(",") if p.strip()]

        # Regla browser: "*" + credentials=True no es válido
        cors_allow_credentials = True
        if allow_origins == ["*"]:
            cors_allow_credentials = False

        api_key = _env_str("OMDB_API_KEY", "")

        return Settings(
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            debug=_env_bool("DEBUG_MODE", False),
            cors_origins_raw=cors_raw,
            cors_allow_credentials=cors_allow_credentials,
            gzip_min_size=_env_int("GZIP_MIN_SIZE", 800),
            omdb_api_key=api_key or None,
            omdb_base_url=_env_str("OMDB_BASE_URL", "https://www.omdbapi.com/"),
            omdb_http_timeout_seconds=max(0.5, _env_float("OMDB_HTTP_TIMEOUT_SECONDS", 10.0)),
            omdb_http_retry_total=max(0, _env_int("OMDB_HTTP_RETRY_TOTAL", 2)),
            omdb_http_retry_backoff_factor=max(0.0, _env_float("OMDB_HTTP_RETRY_BACKOFF_FACTOR", 0.5)),
            omdb_http_user_agent=_env_str("OMDB_HTTP_USER_AGENT", "season-rank/1.0"),
            omdb_http_max_concurrency=max(1, _env_int("OMDB_HTTP_MAX_CONCURRENCY", 8)),
            response_cache_max_entries=max(1, _env_int("RESPONSE_CACHE_MAX_ENTRIES", 1000)),
            response_cache_ttl_seconds=max(0.0, _env_float("RESPONSE_CACHE_TTL_SECONDS", 24 * 60 * 60)),
            rate_limit_search_max=max(1, _env_int("RATE_LIMIT_SEARCH_MAX", 20)),
            rate_limit_search_window_seconds=max(0.001, _env_float("RATE_LIMIT_SEARCH_WINDOW_SECONDS", 60.0)),
            rate_limit_suggest_max=max(1, _env_int("RATE_LIMIT_SUGGEST_MAX", 60)),
            rate_limit_suggest_window_seconds=max(0.001, _env_float("RATE_LIMIT_SUGGEST_WINDOW_SECONDS", 60.0)),
            rate_limit_cleanup_interval_seconds=max(0.0, _env_float("RATE_LIMIT_CLEANUP_INTERVAL_SECONDS", 60.0)),
            suggest_max_results=max(1, _env_int("SUGGEST_MAX_RESULTS", 8)),
            http_cache_s_maxage=max(0, _env_int("HTTP_CACHE_S_MAXAGE", 3600)),
            http_cache_stale_while_revalidate=max(0, _env_int("HTTP_CACHE_STALE_WHILE_REVALIDATE", 86400)),
        )
