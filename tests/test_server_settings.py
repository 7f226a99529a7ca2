from server.api.settings import Settings


def test_settings_from_env_cors_star(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "*")
    settings = Settings.from_env()

    assert settings.cors_allow_origins() == ["*"]
    assert settings.cors_allow_credentials is False


def test_settings_from_env_custom_origins(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://a.com, https://b.com")
    settings = Settings.from_env()

    assert settings.cors_allow_origins() == ["https://a.com", "https://b.com"]
    assert settings.cors_allow_credentials is True


def test_settings_defaults(monkeypatch):
    for name in (
        "OMDB_API_KEY",
        "RESPONSE_CACHE_MAX_ENTRIES",
        "RESPONSE_CACHE_TTL_SECONDS",
        "RATE_LIMIT_SEARCH_MAX",
        "RATE_LIMIT_SUGGEST_MAX",
        "SUGGEST_MAX_RESULTS",
        "DEBUG_MODE",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.omdb_api_key is None
    assert settings.response_cache_max_entries == 1000
    assert settings.response_cache_ttl_seconds == 24 * 60 * 60
    assert settings.rate_limit_search_max == 20
    assert settings.rate_limit_search_window_seconds == 60.0
    assert settings.rate_limit_suggest_max == 60
    assert settings.suggest_max_results == 8
    assert settings.debug is False


def test_settings_from_env_overrides_and_bad_values(monkeypatch):
    monkeypatch.setenv("OMDB_API_KEY", "  abc123 ")
    monkeypatch.setenv("RATE_LIMIT_SEARCH_MAX", "5")
    monkeypatch.setenv("RESPONSE_CACHE_MAX_ENTRIES", "not-a-number")
    monkeypatch.setenv("SUGGEST_MAX_RESULTS", "0")
    monkeypatch.setenv("DEBUG_MODE", "yes")

    settings = Settings.from_env()

    assert settings.omdb_api_key == "abc123"
    assert settings.rate_limit_search_max == 5
    assert settings.response_cache_max_entries == 1000
    assert settings.suggest_max_results == 1
    assert settings.debug is True
