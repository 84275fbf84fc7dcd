"""Configuration management for SecretCache."""

from .manager import CacheSettings, ConfigManager
from .schemas import CONFIG_SCHEMA
from .validator import ConfigValidationError, ConfigValidator

__all__ = ["CONFIG_SCHEMA", "CacheSettings", "ConfigManager", "ConfigValidationError", "ConfigValidator"]
