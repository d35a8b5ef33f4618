"""Unit tests for settings loading."""

import pytest
from pydantic import ValidationError

from querywright.settings import DatabaseSettings, _reload_settings, get_settings
from querywright.settings import main as settings_main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("HOST", "PORT", "USER", "PASSWORD", "DATABASE", "UNIX_SOCKET", "CHARSET", "CONNECT_TIMEOUT"):
        monkeypatch.delenv(f"QUERYWRIGHT_DB_{key}", raising=False)
    monkeypatch.delenv("QUERYWRIGHT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("QUERYWRIGHT_LOG_FORMAT", raising=False)
    yield
    settings_main._settings = None


class TestDatabaseSettings:
    """Test connection settings."""

    def test_defaults(self):
        settings = DatabaseSettings()
        assert settings.host == "localhost"
        assert settings.port is None
        assert settings.charset == "utf8"
        assert settings.init_command == "SET CHARACTER SET utf8"
        assert settings.connect_timeout == 3

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("QUERYWRIGHT_DB_HOST", "db.internal")
        monkeypatch.setenv("QUERYWRIGHT_DB_PORT", "3307")
        monkeypatch.setenv("QUERYWRIGHT_DB_PASSWORD", "pw")
        settings = DatabaseSettings()
        assert settings.host == "db.internal"
        assert settings.port == 3307
        assert settings.password.get_secret_value() == "pw"
        assert "pw" not in repr(settings)

    def test_sqlalchemy_url(self):
        url = DatabaseSettings(host="h", port=3310, user="u", password="p", database="d").get_sqlalchemy_url()
        assert url.drivername == "mysql+pymysql"
        assert (url.host, url.port, url.username, url.password, url.database) == ("h", 3310, "u", "p", "d")

    def test_unix_socket_replaces_host(self):
        settings = DatabaseSettings(unix_socket="/run/mysqld/mysqld.sock")
        assert settings.get_sqlalchemy_url().host is None
        assert settings.get_connect_args()["unix_socket"] == "/run/mysqld/mysqld.sock"

    @pytest.mark.parametrize("field, value", [("port", 0), ("connect_timeout", 0), ("charset", "utf8; DROP")])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            DatabaseSettings(**{field: value})


class TestGetSettings:
    """Test the settings singleton."""

    def test_singleton(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("QUERYWRIGHT_LOG_LEVEL", "debug")
        reloaded = get_settings(force_reload=True)
        assert reloaded is not first
        assert reloaded.log_level == "DEBUG"

    def test_nested_database_settings(self, monkeypatch):
        monkeypatch.setenv("QUERYWRIGHT_DB_DATABASE", "shop")
        assert _reload_settings().database.database == "shop"

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("QUERYWRIGHT_LOG_LEVEL", "loud")
        with pytest.raises(ValidationError):
            get_settings(force_reload=True)

    def test_log_format(self, monkeypatch):
        assert get_settings(force_reload=True).log_format == "json"
        monkeypatch.setenv("QUERYWRIGHT_LOG_FORMAT", "TEXT")
        assert get_settings(force_reload=True).log_format == "text"
        monkeypatch.setenv("QUERYWRIGHT_LOG_FORMAT", "xml")
        with pytest.raises(ValidationError):
            get_settings(force_reload=True)
