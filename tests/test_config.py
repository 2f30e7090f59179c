"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from models.config_models import Config, CredentialsConfig
from utils.config_loader import load_config


def _credentials() -> CredentialsConfig:
    return CredentialsConfig(
        supabase_url="https://myproject.supabase.co",
        supabase_key="valid_key_here",
    )


class TestCredentialsConfig:
    """Test CredentialsConfig validation."""
    
    def test_valid_credentials(self):
        """Test that valid credentials pass validation."""
        creds = _credentials()
        assert creds.supabase_url == "https://myproject.supabase.co"
        assert creds.supabase_key == "valid_key_here"
        assert creds.database_url is None
    
    def test_rejects_placeholder_supabase_url(self):
        """Test that placeholder Supabase URL is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            CredentialsConfig(
                supabase_url="https://your-project.supabase.co",
                supabase_key="valid_key",
            )
        assert "Supabase URL must be set" in str(exc_info.value)
    
    def test_rejects_non_https_supabase_url(self):
        """Test that non-HTTPS Supabase URL is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            CredentialsConfig(
                supabase_url="http://myproject.supabase.co",
                supabase_key="valid_key",
            )
        assert "must start with https://" in str(exc_info.value)
    
    def test_rejects_placeholder_supabase_key(self):
        """Test that placeholder Supabase key is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            CredentialsConfig(
                supabase_url="https://myproject.supabase.co",
                supabase_key="your_supabase_key_here",
            )
        assert "Supabase key must be set" in str(exc_info.value)
    
    def test_empty_credentials_rejected(self):
        """Test that empty credentials are rejected."""
        with pytest.raises(ValidationError):
            CredentialsConfig(supabase_url="", supabase_key="")


class TestConfig:
    """Test main Config model."""
    
    def test_defaults(self):
        """Test default console settings."""
        config = Config(credentials=_credentials())
        assert config.log_level == "INFO"
        assert config.recent_users_days == 7
        assert config.cookie_secure is False
        assert config.allowed_origins == []
    
    def test_log_level_case_insensitive(self):
        """Test that log level is normalized to uppercase."""
        config = Config(credentials=_credentials(), log_level="info")
        assert config.log_level == "INFO"
    
    def test_invalid_log_level_rejected(self):
        """Test that invalid log level is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Config(credentials=_credentials(), log_level="INVALID")
        assert "Log level must be one of" in str(exc_info.value)
    
    def test_recent_users_days_must_be_positive(self):
        """Test that the dashboard window can't be zero."""
        with pytest.raises(ValidationError):
            Config(credentials=_credentials(), recent_users_days=0)
    
    def test_allowed_origins_from_comma_string(self):
        """Test that a comma-separated origin list is split and trimmed."""
        config = Config(
            credentials=_credentials(),
            allowed_origins="http://localhost:5173, https://admin.example.com,",
        )
        assert config.allowed_origins == ["http://localhost:5173", "https://admin.example.com"]


class TestConfigLoader:
    """Test config_loader.load_config() function."""
    
    def test_load_valid_config(self, test_env):
        """Test loading valid configuration from environment."""
        config = load_config()
        
        assert config.credentials.supabase_url == test_env["supabase_url"]
        assert config.credentials.supabase_key == test_env["supabase_key"]
        assert config.log_level == test_env["log_level"]
        assert config.recent_users_days == 14
        assert config.allowed_origins == ["http://localhost:5173", "https://admin.example.com"]
    
    def test_load_config_with_missing_credentials(self, invalid_env):
        """Test that loading config with missing credentials fails gracefully."""
        with pytest.raises(SystemExit) as exc_info:
            load_config()
        assert exc_info.value.code == 1
