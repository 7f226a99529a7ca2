from __future__ import annotations

"""
server/api/services/rate_limit.py

Rate limiter en memoria por (clase de cuota, identidad de cliente).

Algoritmo: ventana FIJA (no deslizante).
- Sin ventana o ventana vencida (now > reset_at): nueva ventana con count=1.
- count >= max_requests: se deniega hasta reset_at (retry_after en segundos, ceil).
- Resto: count += 1 y se admite.

Se acepta la ráfaga en la frontera entre ventanas (hasta 2*max en poco tiempo).

Limpieza oportunista: en cualquier check, si pasó más de cleanup_interval
desde el último barrido, se borran las ventanas vencidas. Acota la memoria
usada por identidades que solo aparecen una vez.

Mono-proceso y best-effort: sin persistencia ni coordinación entre réplicas.
"""

import logging
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from threading import RLock

from server.api.services import metrics

logger = logging.getLogger("seasonrank_api")

ANONYMOUS_IDENTITY = "anonymous"
DEFAULT_CLEANUP_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: float


@dataclass(frozen=True)
class QuotaClass:
    """Cubo de cuota independiente (p.ej. "search" vs "suggest")."""

    name: str
    config: RateLimitConfig

    def key_for(self, identity: str) -> str:
        return f"{self.name}:{identity}"


@dataclass
class RateWindow:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    admitted: bool
    remaining: int
    reset_at: float
    limit: int
    retry_after_seconds: int | None = None


class RateLimiter:
    def __init__(
        self,
        *,
        cleanup_interval_seconds: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cleanup_interval = max(0.0, float(cleanup_interval_seconds))
        self._clock = clock
        self._lock = RLock()
        self._windows: dict[str, RateWindow] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def window_for(self, key: str) -> RateWindow | None:
        with self._lock:
            window = self._windows.get(key)
            return None if window is None else RateWindow(count=window.count, reset_at=window.reset_at)

    def _maybe_cleanup(self, now: float) -> None:
        if now - self._last_sweep <= self._cleanup_interval:
            return
        self._last_sweep = now
        expired = [k for k, w in self._windows.items() if now > w.reset_at]
        for k in expired:
            del self._windows[k]
        if expired:
            metrics.inc("rate_limit_swept_total", len(expired))

    def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        """Consume una request para `key` si la cuota lo permite."""
        max_requests = max(1, int(config.max_requests))
        window_seconds = max(0.0, float(config.window_seconds))

        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)

            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                window = RateWindow(count=1, reset_at=now + window_seconds)
                self._windows[key] = window
                metrics.inc("rate_limit_admitted_total", 1)
                return RateLimitResult(
                    admitted=True,
                    remaining=max_requests - 1,
                    reset_at=window.reset_at,
                    limit=max_requests,
                )

            if window.count >= max_requests:
                metrics.inc("rate_limit_denied_total", 1)
                return RateLimitResult(
                    admitted=False,
                    remaining=0,
                    reset_at=window.reset_at,
                    limit=max_requests,
                    retry_after_seconds=max(1, math.ceil(window.reset_at - now)),
                )

            window.count += 1
            metrics.inc("rate_limit_admitted_total", 1)
            return RateLimitResult(
                admitted=True,
                remaining=max_requests - window.count,
                reset_at=window.reset_at,
                limit=max_requests,
            )

    def check_quota(self, quota: QuotaClass, identity: str) -> RateLimitResult:
        result = self.check(quota.key_for(identity), quota.config)
        if not result.admitted:
            logger.info(
                "rate_limited quota=%s identity=%s retry_after=%s",
                quota.name,
                identity,
                result.retry_after_seconds,
            )
        return result

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


def client_identity(headers: Mapping[str, str]) -> str:
    """
    Identidad del cliente:
    1) primera IP de X-Forwarded-For
    2) X-Real-IP
    3) identidad constante compartida por todos los clientes no trazables
    """
    forwarded_for = (headers.get("x-forwarded-for") or "").strip()
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    return ANONYMOUS_IDENTITY


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(int(math.ceil(result.reset_at))),
    }
    if not result.admitted:
        headers["Retry-After"] = str(result.retry_after_seconds or 1)
    return headers
