from dataclasses import replace

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from backend.errors import UpstreamUnavailable
from server.api.app import create_app


@pytest.fixture()
def client(settings, services):
    app = create_app(settings=settings, services=services)
    with TestClient(app) as c:
        yield c


def test_search_returns_ranked_seasons(client):
    res = client.get("/search/Breaking Bad", headers={"X-Forwarded-For": "203.0.113.5"})

    assert res.status_code == 200
    body = res.json()
    assert body["show"] == {
        "imageUrl": "https://img.example/bb.jpg",
        "name": "Breaking Bad",
        "description": "A chemistry teacher turns to crime.",
        "imdbID": "tt0903747",
        "totalSeasons": 2,
    }
    assert [s["seasonNumber"] for s in body["rankedSeasons"]] == [2, 1]
    assert body["rankedSeasons"][1]["episodes"][2] == {"episode": 3, "rating": "N/A", "title": "S1E3"}

    assert res.headers["X-RateLimit-Remaining"] == "19"
    assert "X-RateLimit-Reset" in res.headers
    assert res.headers["Cache-Control"].startswith("public")
    assert "stale-while-revalidate" in res.headers["Cache-Control"]
    assert res.headers["ETag"].startswith('W/"')
    assert res.headers["X-Request-ID"]


def test_search_304_on_matching_etag(client):
    first = client.get("/search/Breaking Bad")
    etag = first.headers["ETag"]

    second = client.get("/search/Breaking Bad", headers={"If-None-Match": etag})

    assert second.status_code == 304
    assert second.headers["ETag"] == etag


def test_search_validation_error(client, upstream):
    res = client.get("/search/%3Cscript%3E")
    assert res.status_code == 400
    assert res.json()["error"] == "Title contains invalid characters"
    assert upstream.calls == []


def test_search_wrong_media_type(client):
    res = client.get("/search/Inception")
    assert res.status_code == 400
    assert res.json()["error"] == "Please search for a TV series"


def test_search_not_found(client):
    res = client.get("/search/Does Not Exist")
    assert res.status_code == 404
    assert res.json()["error"] == "Movie not found!"


def test_search_upstream_failure_hides_details(client, upstream):
    upstream.errors[("title", "Breaking Bad")] = UpstreamUnavailable(
        "OMDb request failed: ConnectionError('https://www.omdbapi.com/?apikey=secret')"
    )

    res = client.get("/search/Breaking Bad")

    assert res.status_code == 502
    assert res.json()["error"] == "Failed to search for show"
    assert "secret" not in res.text


def test_search_debug_mode_passes_message_through(settings, make_services, upstream):
    debug_settings = replace(settings, debug=True)
    upstream.errors[("title", "Breaking Bad")] = UpstreamUnavailable("OMDb responded with status 503")
    app = create_app(settings=debug_settings, services=make_services(settings=debug_settings))

    with TestClient(app) as c:
        res = c.get("/search/Breaking Bad")

    assert res.status_code == 502
    assert res.json()["error"] == "OMDb responded with status 503"


def test_search_rate_limited_after_20_requests(client):
    headers = {"X-Real-IP": "198.51.100.9"}
    for _ in range(20):
        assert client.get("/search/Breaking Bad", headers=headers).status_code == 200

    res = client.get("/search/Breaking Bad", headers=headers)

    assert res.status_code == 429
    assert int(res.headers["Retry-After"]) > 0
    assert res.headers["X-RateLimit-Remaining"] == "0"
    assert "X-RateLimit-Reset" in res.headers
    assert res.json()["error"].startswith("Too many requests")

    other = client.get("/search/Breaking Bad", headers={"X-Real-IP": "198.51.100.10"})
    assert other.status_code == 200


def test_suggest_returns_bounded_series_list(client):
    res = client.get("/suggest/break")

    assert res.status_code == 200
    assert res.json() == [
        {"title": "Breaking Bad", "year": "2008–2013", "externalId": "tt0903747", "mediaType": "series", "poster": None},
        {"title": "Prison Break", "year": "2005–2017", "externalId": "tt0455275", "mediaType": "series", "poster": None},
    ]
    assert res.headers["X-RateLimit-Remaining"] == "59"
    assert res.headers["Cache-Control"].startswith("public")


def test_suggest_no_matches_is_empty_list(client):
    res = client.get("/suggest/qqqq")
    assert res.status_code == 200
    assert res.json() == []


def test_suggest_validation_error(client):
    res = client.get("/suggest/a%3Cb")
    assert res.status_code == 400


def test_suggest_provider_failure_uses_suggest_fallback(client, upstream):
    upstream.errors[("search", "break")] = UpstreamUnavailable("Invalid API key!")
    res = client.get("/suggest/break")
    assert res.status_code == 502
    assert res.json()["error"] == "Failed to fetch suggestions"


def test_suggest_quota_independent_from_search(settings, make_services):
    tight = replace(settings, rate_limit_search_max=1)
    app = create_app(settings=tight, services=make_services(settings=tight))

    with TestClient(app) as c:
        assert c.get("/search/Breaking Bad").status_code == 200
        assert c.get("/search/Breaking Bad").status_code == 429
        assert c.get("/suggest/break").status_code == 200
