"""Tests for environment-driven configuration."""

import pytest

from access_sync.core.config import SyncConfig, get_config

ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_TABLE",
    "SUPABASE_DEBUG",
    "SYNC_BATCH_SIZE",
    "SYNC_BATCH_PAUSE",
    "SYNC_MAX_RETRIES",
    "SYNC_BACKOFF_BASE",
    "SYNC_BACKOFF_CAP",
    "SYNC_STRICT_STATUS",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestGetConfig:
    """Test loading from environment."""

    def test_defaults(self, clean_env):
        config = get_config()

        assert config.openai_model == "gpt-4o-mini"
        assert config.supabase_table == "psychedelic_access"
        assert config.batch_size == 25
        assert config.batch_pause == 2.0
        assert config.max_retries == 5
        assert config.backoff_base == 2.0
        assert config.backoff_cap == 30.0
        assert config.strict_status is False

    def test_overrides(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-1")
        clean_env.setenv("SUPABASE_URL", "https://p.supabase.co")
        clean_env.setenv("SUPABASE_SERVICE_ROLE_KEY", "svc")
        clean_env.setenv("SYNC_BATCH_SIZE", "10")
        clean_env.setenv("SYNC_BATCH_PAUSE", "0.5")
        clean_env.setenv("SYNC_STRICT_STATUS", "TRUE")

        config = get_config()

        assert config.validate() == []
        assert config.batch_size == 10
        assert config.batch_pause == 0.5
        assert config.strict_status is True
        assert config.rest_url == "https://p.supabase.co/rest/v1"


class TestValidate:
    """Test validation messages."""

    def test_missing_required(self, clean_env):
        errors = get_config().validate()
        assert "OPENAI_API_KEY is required" in errors
        assert "SUPABASE_URL is required" in errors
        assert "SUPABASE_SERVICE_ROLE_KEY is required" in errors

    def test_bad_numbers(self):
        config = SyncConfig(
            openai_api_key="k",
            supabase_url="u",
            supabase_key="s",
            batch_size=0,
            batch_pause=-1,
        )
        errors = config.validate()
        assert "SYNC_BATCH_SIZE must be at least 1" in errors
        assert "SYNC_BATCH_PAUSE must not be negative" in errors
