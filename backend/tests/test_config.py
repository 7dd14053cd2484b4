import pytest

from backend.status_server.core.config import DEFAULT_PORT, AppEnv, Settings, resolve_port


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "PORT",
        "STATUS_HOST",
        "STATUS_APP_ENV",
        "STATUS_LOG_LEVEL",
        "STATUS_JSON_BODY_LIMIT",
        "STATUS_OTEL_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)


def test_port_defaults_to_3000():
    assert DEFAULT_PORT == 3000
    assert Settings().app.port == 3000


def test_port_read_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "8080")

    assert Settings().app.port == 8080


@pytest.mark.parametrize("raw", ["", "abc", "-1", "80.5", "70000", "²", "٣٠٠٠"])
def test_invalid_port_falls_back_to_default(monkeypatch, raw):
    monkeypatch.setenv("PORT", raw)

    assert Settings().app.port == 3000


def test_resolve_port_trims_whitespace():
    assert resolve_port(" 9000 ") == 9000
    assert resolve_port(None) == DEFAULT_PORT
    assert resolve_port("0") == 0


def test_namespaced_settings(monkeypatch):
    monkeypatch.setenv("STATUS_HOST", "127.0.0.1")
    monkeypatch.setenv("STATUS_APP_ENV", "prod")
    monkeypatch.setenv("STATUS_LOG_LEVEL", "debug")

    app_settings = Settings().app

    assert app_settings.host == "127.0.0.1"
    assert app_settings.env is AppEnv.PROD
    assert app_settings.log_level == "DEBUG"


def test_defaults_without_env():
    app_settings = Settings().app

    assert app_settings.host == "0.0.0.0"
    assert app_settings.json_body_limit == 100 * 1024
    assert Settings().otel.enabled is False
