"""Unit tests for GatewaySettings."""

import pytest
from pydantic import ValidationError

from services.settings import GatewaySettings


class TestGatewaySettings:
    """Tests for GatewaySettings defaults and validation."""

    def test_defaults(self):
        settings = GatewaySettings.from_env({})

        assert settings.port == 3000
        assert settings.n8n_base_url == "http://n8n-app:5678"
        assert settings.n8n_api_key is None
        assert settings.redis_url is None
        assert settings.debug is False
        assert settings.log_level == "info"

    def test_from_env(self):
        settings = GatewaySettings.from_env({
            "PORT": "8080",
            "N8N_BASE_URL": "http://localhost:5678/",
            "N8N_API_KEY": "secret",
            "N8N_TIMEOUT": "5",
            "GATEWAY_DEBUG": "true",
            "REDIS_URL": "redis://cache:6379/0",
            "LOG_LEVEL": "DEBUG",
        })

        assert settings.port == 8080
        assert settings.n8n_base_url == "http://localhost:5678"
        assert settings.n8n_api_key == "secret"
        assert settings.request_timeout == 5.0
        assert settings.debug is True
        assert settings.redis_url == "redis://cache:6379/0"
        assert settings.log_level == "debug"

    def test_blank_values_become_none(self):
        settings = GatewaySettings.from_env({"N8N_API_KEY": "  ", "REDIS_URL": ""})

        assert settings.n8n_api_key is None
        assert settings.redis_url is None

    @pytest.mark.parametrize(
        "env",
        [
            {"PORT": "70000"},
            {"N8N_BASE_URL": " "},
            {"N8N_TIMEOUT": "0"},
            {"EXECUTION_POLL_INTERVAL": "-1"},
            {"LOG_LEVEL": "verbose"},
        ],
    )
    def test_invalid_values_rejected(self, env):
        with pytest.raises(ValidationError):
            GatewaySettings.from_env(env)

    def test_settings_are_frozen(self):
        settings = GatewaySettings()
        with pytest.raises(ValidationError):
            settings.port = 1
