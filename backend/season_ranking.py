from __future__ import annotations

"""
backend/season_ranking.py

Ranking de temporadas por rating medio de episodios.

Reglas
------
1) score de temporada = media aritmética de los ratings numéricos parseables.
   - "N/A", vacíos, texto no numérico o valores no finitos quedan fuera
     del numerador y del denominador.
   - Los episodios NO se descartan: se devuelven con su rating original.
2) Sin ningún rating numérico => score = 0.0 (nunca NaN).
3) Orden: score descendente; empate => número de temporada ascendente.

Módulo puro: sin I/O, sin logging, determinista.
"""

import math
from collections.abc import Iterable, Sequence

from backend.models import Episode, RankedSeason, Season


def parse_rating(raw: object) -> float | None:
    """Rating numérico o None si no es parseable."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip()
        if not text or text.upper() == "N/A":
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    return value if math.isfinite(value) else None


def season_score(episodes: Iterable[Episode]) -> float:
    total = 0.0
    count = 0
    for episode in episodes:
        value = parse_rating(episode.rating)
        if value is None:
            continue
        total += value
        count += 1
    return total / count if count > 0 else 0.0


def score_season(season: Season) -> RankedSeason:
    return RankedSeason(
        season_number=season.season_number,
        score=season_score(season.episodes),
        episodes=tuple(season.episodes),
    )


def rank(seasons: Sequence[Season]) -> list[RankedSeason]:
    """
    Puntúa y ordena. Devuelve una permutación de la entrada (una temporada
    puntuada por cada temporada recibida).
    """
    scored = [score_season(s) for s in seasons]
    # sorted() es estable: el orden del proveedor se conserva en empates exactos
    # de (score, season_number).
    return sorted(scored, key=lambda s: (-s.score, s.season_number))
