"""Tests for configuration module."""

import os
from pathlib import Path
from unittest.mock import patch

from vaffaschool.config import Settings, get_settings, reset_settings
from vaffaschool.search.scoring import SearchConfig
from vaffaschool.services.normalizer import NormalizerConfig


class TestSettings:
    """Tests for Settings class."""

    def test_default_settings(self):
        """Test default settings values."""
        settings = Settings()
        assert settings.search_algo == "fuzzy"
        assert settings.school_name_multiplier == 50
        assert settings.city_name_multiplier == 80
        assert settings.min_token_length == 5
        assert settings.search_use_db is True
        assert settings.institutional_email_domain == "istruzione.it"
        assert settings.raw_records_key == "@graph"
        assert settings.debug is False

    def test_settings_from_env(self):
        """Test settings can be loaded from environment variables."""
        env_vars = {
            "VS_SEARCH_ALGO": "simple",
            "VS_CITY_NAME_MULTIPLIER": "100",
            "VS_SEARCH_USE_DB": "false",
            "VS_DEBUG": "true",
        }
        with patch.dict(os.environ, env_vars):
            reset_settings()
            settings = Settings()
            assert settings.search_algo == "simple"
            assert settings.city_name_multiplier == 100
            assert settings.search_use_db is False
            assert settings.debug is True

    def test_sqlite_path(self):
        settings = Settings(data_dir=Path("/tmp/data"))
        assert settings.sqlite_path == Path("/tmp/data/schools.sqlite")

    def test_raw_file_extensions(self):
        settings = Settings(raw_file_types="json, .JSONLD,")
        assert settings.raw_file_extensions == ("json", "jsonld")


class TestGetSettings:
    """Tests for get_settings function."""

    def test_get_settings_singleton(self):
        """Test that get_settings returns same instance."""
        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2

    def test_reset_settings(self):
        settings1 = get_settings()
        reset_settings()
        assert get_settings() is not settings1


class TestDerivedConfigs:
    """Tests for immutable configs built from settings."""

    def test_search_config(self):
        config = SearchConfig.from_settings(
            Settings(school_name_multiplier=10, city_name_multiplier=20, search_algo="simple")
        )
        assert config.school_name_multiplier == 10
        assert config.city_name_multiplier == 20
        assert config.algorithm == "simple"

    def test_search_config_uses_global_settings(self):
        with patch.dict(os.environ, {"VS_MIN_TOKEN_LENGTH": "3"}):
            reset_settings()
            assert SearchConfig.from_settings().min_token_length == 3

    def test_normalizer_config(self):
        config = NormalizerConfig.from_settings(
            Settings(institutional_email_domain="scuole.example", debug=True)
        )
        assert config.institutional_email_domain == "scuole.example"
        assert config.debug is True
