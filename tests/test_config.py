"""Tests for configuration loading and validation."""

import pytest

from hystrix_provider.config import Environment, Settings
from silverware.exceptions import ConfigurationError
from silverware.providers import HttpServerSilverService, HystrixSilverService


def load_settings(monkeypatch, **env: str) -> Settings:
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return Settings.load(Environment(_env_file=None))


class TestLoad:
    """Tests for Settings.load()."""

    def test_defaults(self, monkeypatch):
        for name in (
            "LOG_LEVEL",
            "HTTP_SERVER_ADDRESS",
            "HTTP_SERVER_PORT",
            "HYSTRIX_METRICS_ENABLED",
            "HYSTRIX_METRICS_PATH",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = load_settings(monkeypatch)

        assert settings.log_level == "INFO"
        assert settings.http_server_port is None
        assert settings.hystrix_metrics_enabled is None
        assert settings.to_properties() == {}

    def test_environment_values(self, monkeypatch):
        settings = load_settings(
            monkeypatch,
            LOG_LEVEL="debug",
            HTTP_SERVER_PORT="9090",
            HYSTRIX_METRICS_ENABLED="true",
            HYSTRIX_METRICS_PATH="metrics/hystrix",
        )

        assert settings.log_level == "DEBUG"
        assert settings.http_server_port == 9090
        assert settings.to_properties() == {
            HttpServerSilverService.HTTP_SERVER_PORT: "9090",
            HystrixSilverService.HYSTRIX_METRICS_ENABLED: "true",
            HystrixSilverService.HYSTRIX_METRICS_PATH: "metrics/hystrix",
        }


class TestValidateConfig:
    """Tests for Settings.validate_config()."""

    def test_valid(self):
        Settings(http_server_port=0, hystrix_metrics_path="hystrix.stream").validate_config()

    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"hystrix_metrics_path": " / "}, "HYSTRIX_METRICS_PATH"),
            ({"http_server_port": 70000}, "HTTP_SERVER_PORT"),
            ({"graceful_shutdown_timeout": 0}, "GRACEFUL_SHUTDOWN_TIMEOUT"),
        ],
    )
    def test_invalid(self, overrides, message):
        with pytest.raises(ConfigurationError, match=message):
            Settings(**overrides).validate_config()
