import pytest

from cineplan.core.config import DEFAULT_DB_PATH, Settings, load_settings

ENV_VARS = [
    "CINEPLAN_CACHE_TTL_SECONDS",
    "CINEPLAN_DB_PATH",
    "CINEPLAN_PLAIN_TOP_N",
    "CINEPLAN_OPTIMIZED_TOP_N",
    "CINEPLAN_MAX_COMBINATIONS",
    "CINEPLAN_SHOWTIMES_URL",
    "CINEPLAN_SHOWTIMES_CSV",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    assert load_settings() == Settings()
    assert Settings().cache_ttl_seconds == 7200
    assert Settings().db_path == DEFAULT_DB_PATH


def test_overrides(monkeypatch):
    monkeypatch.setenv("CINEPLAN_CACHE_TTL_SECONDS", "600")
    monkeypatch.setenv("CINEPLAN_DB_PATH", "/tmp/plans.sqlite")
    monkeypatch.setenv("CINEPLAN_OPTIMIZED_TOP_N", "5")
    monkeypatch.setenv("CINEPLAN_SHOWTIMES_URL", "https://showtimes.example")

    settings = load_settings()

    assert settings.cache_ttl_seconds == 600
    assert settings.db_path == "/tmp/plans.sqlite"
    assert settings.optimized_top_n == 5
    assert settings.plain_top_n == 10
    assert settings.showtimes_url == "https://showtimes.example"
    assert settings.showtimes_csv is None


def test_bad_integer(monkeypatch):
    monkeypatch.setenv("CINEPLAN_PLAIN_TOP_N", "ten")
    with pytest.raises(ValueError):
        load_settings()
