"""Tests for configuration management."""

import os
import stat

import pytest
import yaml

from secretcache.config import CacheSettings, ConfigManager, ConfigValidationError, ConfigValidator
from secretcache.secrets import PayloadCipher


def write_config(directory, section):
    path = os.path.join(directory, "secretcache.yml")
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump({"secretcache": section}, f)
    return path


class TestConfigManager:
    """Test configuration manager functionality."""

    def test_defaults_without_config_file(self, temp_directory):
        """No file and no environment gives built-in defaults."""
        config_manager = ConfigManager(path=temp_directory)

        assert config_manager.get_config_path() is None
        assert config_manager.get_settings(environ={}) == CacheSettings()

    def test_load_config_from_file(self, temp_directory):
        """Values in secretcache.yml are used."""
        write_config(
            temp_directory,
            {
                "region": "eu-west-1",
                "cache_ttl_seconds": 600,
                "rotation_buffer_days": 3,
                "default_secret_name": "prod/db",
                "cache": {"backend": "file", "path": "/tmp/secretcache"},
            },
        )

        settings = ConfigManager(path=temp_directory).get_settings(environ={})

        assert settings.region == "eu-west-1"
        assert settings.cache_ttl_seconds == 600
        assert settings.rotation_buffer_days == 3
        assert settings.default_secret_name == "prod/db"
        assert settings.cache_backend == "file"
        assert settings.cache_path == "/tmp/secretcache"

    def test_explicit_config_file(self, temp_directory):
        """An explicit config file overrides discovery."""
        path = os.path.join(temp_directory, "custom.yml")
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump({"secretcache": {"region": "ap-southeast-2"}}, f)

        config_manager = ConfigManager(path="/nonexistent", config_file=path)

        assert config_manager.get_config_path() == path
        assert config_manager.get_settings(environ={}).region == "ap-southeast-2"

    def test_missing_explicit_config_file(self, temp_directory):
        """A missing explicit file is an error."""
        config_manager = ConfigManager(config_file=os.path.join(temp_directory, "missing.yml"))

        with pytest.raises(FileNotFoundError):
            config_manager.load_config()

    def test_load_config_invalid_yaml(self, temp_directory):
        """Invalid YAML is reported as a validation error."""
        with open(os.path.join(temp_directory, "secretcache.yml"), "w", encoding="utf-8") as f:
            f.write("secretcache: [unclosed")

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigManager(path=temp_directory).load_config()

        assert "Invalid YAML" in exc_info.value.errors[0]

    def test_load_config_unknown_key(self, temp_directory):
        """Unknown keys are rejected by the schema."""
        write_config(temp_directory, {"regoin": "us-east-1"})

        with pytest.raises(ConfigValidationError):
            ConfigManager(path=temp_directory).load_config()

    def test_environment_overrides_file(self, temp_directory):
        """SECRETCACHE_* variables win over the file."""
        write_config(temp_directory, {"region": "eu-west-1", "cache_ttl_seconds": 600})
        environ = {
            "SECRETCACHE_REGION": "us-west-2",
            "SECRETCACHE_CACHE_TTL": "120",
            "SECRETCACHE_ROTATION_BUFFER_DAYS": "0",
            "SECRETCACHE_DEFAULT_SECRET": "staging/db",
            "SECRETCACHE_CACHE_BACKEND": "file",
            "SECRETCACHE_CACHE_PATH": "/var/cache/secretcache",
            "SECRETCACHE_ENDPOINT_URL": "http://localhost:4566",
        }

        settings = ConfigManager(path=temp_directory).get_settings(environ=environ)

        assert settings.region == "us-west-2"
        assert settings.cache_ttl_seconds == 120
        assert settings.rotation_buffer_days == 0
        assert settings.default_secret_name == "staging/db"
        assert settings.cache_backend == "file"
        assert settings.cache_path == "/var/cache/secretcache"
        assert settings.endpoint_url == "http://localhost:4566"

    def test_aws_region_fallback(self, temp_directory):
        """AWS_REGION applies when no region is configured."""
        config_manager = ConfigManager(path=temp_directory)

        assert config_manager.get_settings(environ={"AWS_REGION": "eu-central-1"}).region == "eu-central-1"
        assert config_manager.get_settings(environ={"AWS_DEFAULT_REGION": "sa-east-1"}).region == "sa-east-1"

    def test_aws_region_does_not_override_file(self, temp_directory):
        """A configured region wins over AWS_REGION."""
        write_config(temp_directory, {"region": "eu-west-1"})

        settings = ConfigManager(path=temp_directory).get_settings(environ={"AWS_REGION": "us-west-2"})

        assert settings.region == "eu-west-1"

    def test_non_integer_environment_value(self, temp_directory):
        """Non-integer TTL overrides are rejected."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigManager(path=temp_directory).get_settings(environ={"SECRETCACHE_CACHE_TTL": "five"})

        assert "SECRETCACHE_CACHE_TTL must be an integer: five" in exc_info.value.errors

    def test_zero_ttl_rejected(self, temp_directory):
        """The cache TTL must be at least one second."""
        with pytest.raises(ConfigValidationError):
            ConfigManager(path=temp_directory).get_settings(environ={"SECRETCACHE_CACHE_TTL": "0"})

    def test_initialize_config(self, temp_directory):
        """config init writes a valid, owner-only file."""
        key = PayloadCipher.generate_key().decode("ascii")
        config_manager = ConfigManager(path=temp_directory)

        path = config_manager.initialize_config(encryption_key=key, region="eu-west-1", default_secret_name="prod/db")

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        settings = config_manager.get_settings(environ={})
        assert settings.region == "eu-west-1"
        assert settings.encryption_key == key
        assert settings.default_secret_name == "prod/db"
        assert settings.cache_backend == "file"

    def test_initialize_config_refuses_overwrite(self, temp_directory):
        """An existing file is kept unless forced."""
        key = PayloadCipher.generate_key().decode("ascii")
        config_manager = ConfigManager(path=temp_directory)
        config_manager.initialize_config(encryption_key=key)

        with pytest.raises(FileExistsError):
            config_manager.initialize_config(encryption_key=key)

        new_key = PayloadCipher.generate_key().decode("ascii")
        config_manager.initialize_config(encryption_key=new_key, force=True)
        assert config_manager.get_settings(environ={}).encryption_key == new_key


class TestConfigValidator:
    """Test configuration validation."""

    def setup_method(self):
        """Setup test environment."""
        self.validator = ConfigValidator()

    def test_valid_config(self):
        """A complete configuration validates cleanly."""
        config = {
            "secretcache": {
                "region": "us-east-1",
                "cache_ttl_seconds": 300,
                "rotation_buffer_days": 7,
                "encryption_key": PayloadCipher.generate_key().decode("ascii"),
                "cache": {"backend": "memory"},
            }
        }

        assert self.validator.validate_config(config) == []

    def test_missing_section(self):
        """The secretcache section is required."""
        errors = self.validator.validate_config({})

        assert any("secretcache" in error for error in errors)

    def test_invalid_region(self):
        """Region must look like an AWS region."""
        errors = self.validator.validate_config({"secretcache": {"region": "nowhere"}})

        assert "Invalid AWS region format: nowhere" in errors

    def test_invalid_encryption_key(self):
        """Encryption keys must decode to 32 bytes."""
        errors = self.validator.validate_config({"secretcache": {"encryption_key": "c2hvcnQ="}})

        assert any("32 bytes" in error for error in errors)

    def test_unknown_backend(self):
        """Only memory and file backends are accepted."""
        errors = self.validator.validate_config({"secretcache": {"cache": {"backend": "redis"}}})

        assert len(errors) == 1
        assert "cache.backend" in errors[0]

    def test_file_backend_requires_path(self):
        """The file backend needs a directory."""
        errors = self.validator.validate_config({"secretcache": {"cache": {"backend": "file"}}})

        assert "cache.path is required when cache.backend is 'file'" in errors

    def test_validate_config_file_missing(self, temp_directory):
        """Missing files are reported, not raised."""
        errors = self.validator.validate_config_file(os.path.join(temp_directory, "missing.yml"))

        assert errors[0].startswith("Configuration file not found")
