from __future__ import annotations

"""
backend/models.py

Modelos de dominio (inmutables) + render a payload JSON.

Notas:
- Los ratings de episodio se guardan tal cual los devuelve OMDb ("8.5", "N/A").
  El parseo numérico solo existe para puntuar (backend.season_ranking).
- Los nombres de campos del payload público son estables (camelCase); no los
  cambies sin versionar la API.
"""

from dataclasses import dataclass, field
from typing import Any

SERIES_MEDIA_TYPE = "series"
NOT_AVAILABLE = "N/A"


def _none_if_na(value: str | None) -> str | None:
    if value is None:
        return None
    v = value.strip()
    if not v or v == NOT_AVAILABLE:
        return None
    return v


@dataclass(frozen=True)
class TitleMetadata:
    """Ficha de título tal y como la resuelve el proveedor (cualquier tipo)."""

    external_id: str
    title: str
    media_type: str
    year: str | None = None
    poster_url: str | None = None
    synopsis: str | None = None
    total_seasons: int = 0

    @property
    def is_series(self) -> bool:
        return self.media_type.strip().lower() == SERIES_MEDIA_TYPE


@dataclass(frozen=True)
class Series:
    series_id: str
    title: str
    poster_url: str | None = None
    synopsis: str | None = None
    total_seasons: int = 0

    @classmethod
    def from_metadata(cls, meta: TitleMetadata) -> "Series":
        return cls(
            series_id=meta.external_id,
            title=meta.title,
            poster_url=_none_if_na(meta.poster_url),
            synopsis=_none_if_na(meta.synopsis),
            total_seasons=max(0, int(meta.total_seasons)),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "imageUrl": self.poster_url,
            "name": self.title,
            "description": self.synopsis,
            "imdbID": self.series_id,
            "totalSeasons": self.total_seasons,
        }


@dataclass(frozen=True)
class Episode:
    episode_number: int
    title: str
    # Valor original del proveedor: numérico en texto o centinela ("N/A").
    rating: str

    def to_payload(self) -> dict[str, Any]:
        return {"episode": self.episode_number, "rating": self.rating, "title": self.title}


@dataclass(frozen=True)
class Season:
    season_number: int
    episodes: tuple[Episode, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RankedSeason:
    season_number: int
    score: float
    episodes: tuple[Episode, ...]

    def to_payload(self) -> dict[str, Any]:
        return {
            "seasonNumber": self.season_number,
            "rating": self.score,
            "episodes": [e.to_payload() for e in self.episodes],
        }


@dataclass(frozen=True)
class RankedSeries:
    series: Series
    ranked_seasons: tuple[RankedSeason, ...]

    def to_payload(self) -> dict[str, Any]:
        return {
            "show": self.series.to_payload(),
            "rankedSeasons": [s.to_payload() for s in self.ranked_seasons],
        }


@dataclass(frozen=True)
class SearchItem:
    title: str
    year: str | None
    external_id: str
    media_type: str
    poster_url: str | None = None

    @property
    def is_series(self) -> bool:
        return self.media_type.strip().lower() == SERIES_MEDIA_TYPE

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "year": self.year,
            "externalId": self.external_id,
            "mediaType": self.media_type,
            "poster": _none_if_na(self.poster_url),
        }
