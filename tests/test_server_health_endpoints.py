from dataclasses import replace

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from server.api.app import create_app


def test_health(settings, services):
    with TestClient(create_app(settings=settings, services=services)) as client:
        res = client.get("/health")

    assert res.status_code == 200
    assert res.json()["ok"] is True
    assert res.headers["X-Request-ID"]


def test_ready_with_credentials_reports_cache(settings, services):
    with TestClient(create_app(settings=settings, services=services)) as client:
        client.get("/search/Breaking Bad")
        res = client.get("/ready")

    assert res.status_code == 200
    body = res.json()
    assert body["ready"] is True
    assert body["cache"]["size"] == 3
    assert body["cache"]["max_size"] == settings.response_cache_max_entries


def test_ready_without_credentials_is_503(settings, make_services, upstream):
    upstream.has_credentials = False
    no_key = replace(settings, omdb_api_key=None)

    with TestClient(create_app(settings=no_key, services=make_services(settings=no_key))) as client:
        res = client.get("/ready")

    assert res.status_code == 503
    assert res.json()["detail"]["ready"] is False


def test_metrics_exposes_counters(settings, services):
    with TestClient(create_app(settings=settings, services=services)) as client:
        client.get("/search/Breaking Bad")
        client.get("/search/Breaking Bad")
        res = client.get("/metrics")

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/plain")
    text = res.text
    assert "http_requests_total" in text
    assert "response_cache_hit_total" in text
    assert "rate_limit_admitted_total" in text
    assert "omdb_http_requests_total" in text
