"""Configuration validation for SecretCache."""

import base64
import binascii
from typing import Any, Dict, List

import jsonschema
import yaml

from .schemas import CONFIG_SCHEMA


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(f"Configuration validation failed: {'; '.join(errors)}")


class ConfigValidator:
    """Validates SecretCache configuration files."""

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate SecretCache configuration.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List[str]: List of validation errors (empty if valid)
        """
        errors = []

        validator = jsonschema.Draft7Validator(CONFIG_SCHEMA)
        for error in sorted(validator.iter_errors(config), key=lambda e: list(e.path)):
            location = ".".join(str(part) for part in error.path)
            if location:
                errors.append(f"Schema validation failed at {location}: {error.message}")
            else:
                errors.append(f"Schema validation failed: {error.message}")

        section = config.get("secretcache") if isinstance(config, dict) else None
        if isinstance(section, dict):
            if "region" in section:
                errors.extend(self._validate_region(section["region"]))

            if section.get("encryption_key"):
                errors.extend(self._validate_encryption_key(section["encryption_key"]))

            cache = section.get("cache") or {}
            if isinstance(cache, dict) and cache.get("backend") == "file" and not cache.get("path"):
                errors.append("cache.path is required when cache.backend is 'file'")

        return errors

    def validate_config_file(self, file_path: str) -> List[str]:
        """
        Validate configuration file.

        Args:
            file_path: Path to configuration file

        Returns:
            List[str]: List of validation errors (empty if valid)
        """
        try:
            with open(file_path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            return [f"Configuration file not found: {file_path}"]
        except yaml.YAMLError as e:
            return [f"YAML parsing error: {e}"]
        except OSError as e:
            return [f"Error reading configuration file: {e}"]

        if config is None:
            return ["Configuration file is empty"]

        return self.validate_config(config)

    def _validate_region(self, region: Any) -> List[str]:
        """Validate AWS region format (e.g. us-east-1)."""
        errors = []

        if not isinstance(region, str) or not region:
            errors.append("Region cannot be empty")
            return errors

        parts = region.split("-")
        if len(parts) < 3 or not parts[-1].isdigit():
            errors.append(f"Invalid AWS region format: {region}")

        return errors

    def _validate_encryption_key(self, key: Any) -> List[str]:
        """Validate that the key decodes to a 32-byte Fernet key."""
        if not isinstance(key, str):
            return []

        try:
            raw = base64.urlsafe_b64decode(key.encode("ascii"))
        except (binascii.Error, ValueError):
            return ["encryption_key is not valid urlsafe base64"]

        if len(raw) != 32:
            return ["encryption_key must decode to 32 bytes (use Fernet.generate_key())"]

        return []
