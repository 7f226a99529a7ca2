# TTL + capacidad acotada + desalojo por orden de inserción
from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from threading import RLock
from typing import Any, Generic, TypeVar

from server.api.services import metrics

T = TypeVar("T")

DEFAULT_MAX_ENTRIES = 1000
DEFAULT_TTL_SECONDS = 24 * 60 * 60.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """
    Entrada cacheada.

    - value: respuesta ya parseada (modelo de dominio).
    - stored_at: instante de inserción según el reloj de la caché
      (monotonic por defecto, así el TTL no depende del reloj del sistema).
    """

    value: T
    stored_at: float


class ResponseCache:
    """
    Caché clave/valor en memoria, compartida por todas las requests del proceso.

    - get(): TTL perezoso. Una entrada con edad > TTL se borra al leerla.
    - set(): si la clave es nueva y la caché está llena, desaloja exactamente
      una entrada: la insertada hace más tiempo que siga presente.
      Sobrescribir una clave existente la mueve al final (nueva inserción).
    - Sin barrido en background: entradas caducadas no leídas siguen contando
      para el tamaño hasta que las desaloje una inserción.
    - Leer NO cambia el orden (no es LRU).

    ttl_seconds <= 0 desactiva la caducidad.
    """

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_entries = max(1, int(max_entries))
        self._ttl_seconds = max(0.0, float(ttl_seconds))
        self._clock = clock

        self._lock = RLock()
        self._entries: "OrderedDict[str, CacheEntry[Any]]" = OrderedDict()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def _is_expired(self, entry: CacheEntry[Any], now: float) -> bool:
        if self._ttl_seconds <= 0.0:
            return False
        return (now - entry.stored_at) > self._ttl_seconds

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                metrics.inc("response_cache_miss_total", 1)
                return None

            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                metrics.inc("response_cache_expired_total", 1)
                metrics.inc("response_cache_miss_total", 1)
                return None

            metrics.inc("response_cache_hit_total", 1)
            return entry.value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self._max_entries:
                self._entries.popitem(last=False)
                metrics.inc("response_cache_evictions_total", 1)

            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def keys(self) -> list[str]:
        """Claves en orden de inserción (la más antigua primero)."""
        with self._lock:
            return list(self._entries.keys())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self._max_entries,
                "ttl_seconds": self._ttl_seconds,
            }
