from __future__ import annotations

from collections.abc import Mapping
from threading import RLock

_LOCK = RLock()
_METRICS: dict[str, int] = {
    "http_requests_total": 0,
    "http_errors_5xx_total": 0,
    "response_cache_hit_total": 0,
    "response_cache_miss_total": 0,
    "response_cache_expired_total": 0,
    "response_cache_evictions_total": 0,
    "rate_limit_admitted_total": 0,
    "rate_limit_denied_total": 0,
    "rate_limit_swept_total": 0,
    "lookup_errors_total": 0,
}


def inc(name: str, value: int = 1) -> None:
    with _LOCK:
        _METRICS[name] = _METRICS.get(name, 0) + value


def render_prometheus(extra: Mapping[str, int] | None = None) -> str:
    """Texto Prometheus; `extra` añade contadores de otros módulos (p.ej. OMDb)."""
    with _LOCK:
        merged = dict(_METRICS)
    if extra:
        merged.update(extra)

    lines: list[str] = []
    for k, v in sorted(merged.items()):
        lines.append(f"# TYPE {k} counter")
        lines.append(f"{k} {v}")
    return "\n".join(lines) + "\n"
