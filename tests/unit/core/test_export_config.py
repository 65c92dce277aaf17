#!/usr/bin/env python3
"""
Unit tests for export configuration and environment helpers.
"""

import os
from unittest.mock import patch

import pytest

from bibframe_api.core.config import DEFAULT_ASSIGNER_LABEL, DEFAULT_ASSIGNER_URI, ExportConfig
from bibframe_api.core.env_utils import getenv_bool, getenv_clean, getenv_int, getenv_list


@pytest.mark.unit
class TestExportConfig:
    """Test suite for ExportConfig"""

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        """Test defaults when no environment variables are set"""
        config = ExportConfig()

        assert config.DEV_MODE is False
        assert config.DEFAULT_ASSIGNER_URI == DEFAULT_ASSIGNER_URI
        assert config.DEFAULT_ASSIGNER_LABEL == DEFAULT_ASSIGNER_LABEL
        assert config.CATALOGER_CODE == ""
        assert config.ONTOLOGY_CACHE_TTL == 86400
        assert config.ONTOLOGY_TIMEOUT == 10
        assert config.POLICY_BASE_URL == ""
        assert config.ERROR_REPORT_URL == ""
        assert config.CORS_ORIGINS == ["http://localhost:3000"]
        assert config.APP_VERSION == "unknown"

    @patch.dict(os.environ, {
        "BIBFRAME_DEV_MODE": "true",
        "DEFAULT_ASSIGNER_URI": "http://id.loc.gov/vocabulary/organizations/dlc",
        "CATALOGER_CODE": "jdoe",
        "ONTOLOGY_CACHE_TTL": "60",
        "CORS_ORIGINS": "http://a.example.org, http://b.example.org",
    })
    def test_environment_overrides(self):
        """Test values are read from the environment"""
        config = ExportConfig()

        assert config.DEV_MODE is True
        assert config.DEFAULT_ASSIGNER_URI == "http://id.loc.gov/vocabulary/organizations/dlc"
        assert config.CATALOGER_CODE == "jdoe"
        assert config.ONTOLOGY_CACHE_TTL == 60
        assert config.CORS_ORIGINS == ["http://a.example.org", "http://b.example.org"]

    @patch.dict(os.environ, {"ERROR_REPORT_URL": "https://reports.example.org/", "POLICY_BASE_URL": ""})
    def test_summary_hides_urls(self):
        """Test summary reports features as booleans only"""
        summary = ExportConfig().summary()

        assert summary["error_reporting"] is True
        assert summary["policy_lookup"] is False
        assert "https://reports.example.org/" not in str(summary)


@pytest.mark.unit
class TestEnvUtils:
    """Test suite for environment helpers"""

    @patch.dict(os.environ, {"SOME_URL": "http://example.org/\r"})
    def test_getenv_clean_strips_carriage_return(self):
        assert getenv_clean("SOME_URL") == "http://example.org/"

    @patch.dict(os.environ, {}, clear=True)
    def test_getenv_clean_default(self):
        assert getenv_clean("MISSING") is None
        assert getenv_clean("MISSING", "x") == "x"

    @pytest.mark.parametrize("raw,expected", [("1", True), ("yes", True), ("off", False), ("", False)])
    def test_getenv_bool_values(self, raw, expected):
        with patch.dict(os.environ, {"FLAG": raw}):
            assert getenv_bool("FLAG", default=not expected) is expected

    @patch.dict(os.environ, {"FLAG": "maybe"})
    def test_getenv_bool_invalid_uses_default(self):
        assert getenv_bool("FLAG", default=True) is True

    @patch.dict(os.environ, {"COUNT": "ten"})
    def test_getenv_int_invalid_uses_default(self):
        assert getenv_int("COUNT", 5) == 5

    @patch.dict(os.environ, {"ITEMS": " a ,, b "})
    def test_getenv_list_skips_blanks(self):
        assert getenv_list("ITEMS") == ["a", "b"]
