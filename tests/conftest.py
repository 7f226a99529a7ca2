from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from backend.errors import NotFound
from backend.models import Episode, SearchItem, Season, TitleMetadata
from server.api.caching.response_cache import ResponseCache
from server.api.deps import Services, build_services
from server.api.services.rate_limit import RateLimiter
from server.api.settings import Settings


class FakeClock:
    """Reloj manual: tests avanzan el tiempo con advance()."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _build_season(number: int, ratings: list[str]) -> Season:
    return Season(
        season_number=number,
        episodes=tuple(
            Episode(episode_number=i, title=f"S{number}E{i}", rating=r)
            for i, r in enumerate(ratings, start=1)
        ),
    )


@dataclass
class FakeUpstream:
    """
    Minimal upstream client with programmable data.

    Records every call so tests can assert cache hits never reach it.
    """

    titles: dict[str, TitleMetadata] = field(default_factory=dict)
    seasons: dict[tuple[str, int], Season] = field(default_factory=dict)
    search_results: dict[str, list[SearchItem]] = field(default_factory=dict)
    errors: dict[tuple[Any, ...], Exception] = field(default_factory=dict)
    calls: list[tuple[Any, ...]] = field(default_factory=list)
    has_credentials: bool = True

    def _maybe_raise(self, call: tuple[Any, ...]) -> None:
        exc = self.errors.get(call)
        if exc is not None:
            raise exc

    def get_title_metadata(self, title: str) -> TitleMetadata:
        call = ("title", title)
        self.calls.append(call)
        self._maybe_raise(call)
        meta = self.titles.get(title.lower())
        if meta is None:
            raise NotFound("Movie not found!")
        return meta

    def get_season_episodes(self, series_id: str, season_number: int) -> Season:
        call = ("season", series_id, season_number)
        self.calls.append(call)
        self._maybe_raise(call)
        return self.seasons[(series_id, season_number)]

    def search_by_prefix(self, query: str, *, media_type: str = "series", page: int = 1) -> list[SearchItem]:
        call = ("search", query)
        self.calls.append(call)
        self._maybe_raise(call)
        found = self.search_results.get(query.lower())
        if found is None:
            raise NotFound("Series not found!")
        return list(found)

    def count(self, kind: str) -> int:
        return sum(1 for c in self.calls if c[0] == kind)


def _build_series_meta(series_id: str = "tt0903747", title: str = "Breaking Bad", total_seasons: int = 2) -> TitleMetadata:
    return TitleMetadata(
        external_id=series_id,
        title=title,
        media_type="series",
        year="2008–2013",
        poster_url="https://img.example/bb.jpg",
        synopsis="A chemistry teacher turns to crime.",
        total_seasons=total_seasons,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_clock() -> Callable[..., FakeClock]:
    """Relojes adicionales (p.ej. con epoch real para cabeceras X-RateLimit-Reset)."""
    return FakeClock


@pytest.fixture()
def make_season() -> Callable[[int, list[str]], Season]:
    return _build_season


@pytest.fixture()
def series_meta() -> Callable[..., TitleMetadata]:
    return _build_series_meta


@pytest.fixture()
def upstream() -> FakeUpstream:
    fake = FakeUpstream()
    fake.titles["breaking bad"] = _build_series_meta()
    fake.seasons[("tt0903747", 1)] = _build_season(1, ["7.0", "7.4", "N/A"])
    fake.seasons[("tt0903747", 2)] = _build_season(2, ["8.8", "9.0"])
    fake.titles["inception"] = TitleMetadata(
        external_id="tt1375666", title="Inception", media_type="movie", year="2010"
    )
    fake.search_results["break"] = [
        SearchItem(title="Breaking Bad", year="2008–2013", external_id="tt0903747", media_type="series"),
        SearchItem(title="Prison Break", year="2005–2017", external_id="tt0455275", media_type="series"),
        SearchItem(title="Breaking Point", year="1999", external_id="tt0000001", media_type="movie"),
    ]
    return fake


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        log_level="INFO",
        cors_origins_raw="*",
        cors_allow_credentials=False,
        gzip_min_size=800,
        omdb_api_key="test-key",
        rate_limit_search_max=20,
        rate_limit_search_window_seconds=60.0,
        rate_limit_suggest_max=60,
        rate_limit_suggest_window_seconds=60.0,
        suggest_max_results=8,
    )


@pytest.fixture()
def make_services(settings: Settings, upstream: FakeUpstream, clock: FakeClock) -> Callable[..., Services]:
    def _make(**overrides: Any) -> Services:
        s = overrides.pop("settings", settings)
        cache = overrides.pop(
            "cache",
            ResponseCache(
                max_entries=s.response_cache_max_entries,
                ttl_seconds=s.response_cache_ttl_seconds,
                clock=clock,
            ),
        )
        limiter = overrides.pop(
            "limiter",
            RateLimiter(cleanup_interval_seconds=s.rate_limit_cleanup_interval_seconds, clock=clock),
        )
        client = overrides.pop("client", upstream)
        return build_services(s, client=client, cache=cache, limiter=limiter)

    return _make


@pytest.fixture()
def services(make_services: Callable[..., Services]) -> Services:
    return make_services()
