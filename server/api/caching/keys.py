# claves namespaced de la ResponseCache
from __future__ import annotations

from backend.title_utils import normalize_title_for_lookup


def title_key(title: str) -> str:
    return f"title:{normalize_title_for_lookup(title)}"


def season_key(series_id: str, season_number: int) -> str:
    return f"season:{series_id}:{int(season_number)}"


def suggest_key(query: str) -> str:
    return f"suggest:{normalize_title_for_lookup(query)}"
