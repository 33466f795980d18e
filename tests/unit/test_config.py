"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from formbuilder.config import Settings


def make_settings(**overrides):
    values = {"database_url": "sqlite:///:memory:"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self):
        settings = make_settings()

        assert settings.auth_user_header == "X-User-Id"
        assert settings.temp_id_prefix == "temp_"
        assert settings.database_pool_size == 5

    def test_environment_normalized(self):
        settings = make_settings(environment="Production")

        assert settings.environment == "production"
        assert settings.is_production is True
        assert settings.is_development is False

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            make_settings(environment="qa")

    def test_log_level_normalized(self):
        assert make_settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            make_settings(log_level="VERBOSE")

    def test_allowed_origins_list(self):
        settings = make_settings(allowed_origins="https://a.example.com, ,https://b.example.com")

        assert settings.get_allowed_origins_list() == [
            "https://a.example.com",
            "https://b.example.com",
        ]

    def test_empty_temp_prefix_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(temp_id_prefix="")
