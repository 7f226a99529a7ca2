from __future__ import annotations

from server.api.caching.http_cache import cache_control_value, etag_for_payload, maybe_not_modified
from server.api.caching.keys import season_key, suggest_key, title_key
from server.api.caching.response_cache import CacheEntry, ResponseCache

__all__ = [
    "CacheEntry",
    "ResponseCache",
    "cache_control_value",
    "etag_for_payload",
    "maybe_not_modified",
    "season_key",
    "suggest_key",
    "title_key",
]
