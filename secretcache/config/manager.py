"""Configuration management for SecretCache."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml
from jinja2 import Environment, FileSystemLoader

from .validator import ConfigValidationError, ConfigValidator

CONFIG_FILENAME = "secretcache.yml"
DEFAULT_CACHE_PATH = "~/.cache/secretcache"

# Environment variable -> (config key, converter)
ENV_OVERRIDES = {
    "SECRETCACHE_REGION": ("region", str),
    "SECRETCACHE_ENDPOINT_URL": ("endpoint_url", str),
    "SECRETCACHE_CACHE_TTL": ("cache_ttl_seconds", int),
    "SECRETCACHE_ROTATION_BUFFER_DAYS": ("rotation_buffer_days", int),
    "SECRETCACHE_DEFAULT_SECRET": ("default_secret_name", str),
    "SECRETCACHE_ENCRYPTION_KEY": ("encryption_key", str),
    "SECRETCACHE_CACHE_BACKEND": ("cache.backend", str),
    "SECRETCACHE_CACHE_PATH": ("cache.path", str),
}


@dataclass
class CacheSettings:
    """Effective settings after file and environment overrides."""

    region: str = "us-east-1"
    cache_ttl_seconds: int = 300
    rotation_buffer_days: int = 7
    default_secret_name: Optional[str] = None
    encryption_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    cache_backend: str = "memory"
    cache_path: str = DEFAULT_CACHE_PATH


class ConfigManager:
    """Manages SecretCache configuration files."""

    def __init__(self, path: Optional[str] = None, config_file: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            path: Optional custom directory (defaults to current directory)
            config_file: Explicit configuration file (overrides discovery)
        """
        self.path = path or os.getcwd()
        self.config_file = config_file
        self.validator = ConfigValidator()
        self._config_cache: Dict[str, Dict[str, Any]] = {}

        templates_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
        self.jinja_env = Environment(loader=FileSystemLoader(templates_dir), trim_blocks=True, lstrip_blocks=True)

    def get_config_path(self) -> Optional[str]:
        """Get path to the configuration file, or None if there is none."""
        if self.config_file:
            return self.config_file

        candidate = os.path.join(self.path, CONFIG_FILENAME)
        if os.path.exists(candidate):
            return candidate

        return None

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """
        Load configuration from file (empty section if no file exists).

        Args:
            validate: Whether to validate the configuration

        Returns:
            Dict[str, Any]: Loaded configuration

        Raises:
            ConfigValidationError: If validation or YAML parsing fails
            FileNotFoundError: If an explicit config file doesn't exist
        """
        config_path = self.get_config_path()
        if not config_path:
            return {"secretcache": {}}

        if config_path in self._config_cache:
            return self._config_cache[config_path]

        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigValidationError([f"Invalid YAML in {config_path}: {e}"])

        if config is None:
            config = {"secretcache": {}}

        if validate:
            errors = self.validator.validate_config(config)
            if errors:
                raise ConfigValidationError(errors)

        self._config_cache[config_path] = config
        return config

    def get_settings(self, environ: Optional[Dict[str, str]] = None) -> CacheSettings:
        """
        Build effective settings from the config file and environment.

        Args:
            environ: Environment mapping (defaults to os.environ)

        Returns:
            CacheSettings: Effective settings

        Raises:
            ConfigValidationError: If the merged configuration is invalid
        """
        environ = os.environ if environ is None else environ
        section = dict(self.load_config().get("secretcache") or {})
        section["cache"] = dict(section.get("cache") or {})

        if "region" not in section:
            fallback_region = environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION")
            if fallback_region:
                section["region"] = fallback_region

        errors = []
        for env_var, (key, convert) in ENV_OVERRIDES.items():
            raw = environ.get(env_var)
            if raw is None or raw == "":
                continue
            try:
                value = convert(raw)
            except ValueError:
                errors.append(f"{env_var} must be an integer: {raw}")
                continue

            if key.startswith("cache."):
                section["cache"][key.split(".", 1)[1]] = value
            else:
                section[key] = value

        if not section["cache"]:
            del section["cache"]

        errors.extend(self.validator.validate_config({"secretcache": section}))
        if errors:
            raise ConfigValidationError(errors)

        cache = section.get("cache", {})
        defaults = CacheSettings()
        return CacheSettings(
            region=section.get("region", defaults.region),
            cache_ttl_seconds=section.get("cache_ttl_seconds", defaults.cache_ttl_seconds),
            rotation_buffer_days=section.get("rotation_buffer_days", defaults.rotation_buffer_days),
            default_secret_name=section.get("default_secret_name"),
            encryption_key=section.get("encryption_key"),
            endpoint_url=section.get("endpoint_url"),
            cache_backend=cache.get("backend", defaults.cache_backend),
            cache_path=cache.get("path", defaults.cache_path),
        )

    def initialize_config(
        self,
        encryption_key: str,
        region: str = "us-east-1",
        default_secret_name: Optional[str] = None,
        force: bool = False,
    ) -> str:
        """
        Write a default configuration file into the working directory.

        Args:
            encryption_key: Fernet key for cached payloads
            region: AWS region
            default_secret_name: Secret used by 'secretcache test'
            force: Overwrite an existing file

        Returns:
            str: Path to created configuration file

        Raises:
            FileExistsError: If the file exists and force is False
        """
        config_path = os.path.join(self.path, CONFIG_FILENAME)
        if os.path.exists(config_path) and not force:
            raise FileExistsError(f"Configuration file already exists: {config_path}")

        template = self.jinja_env.get_template("secretcache.yml.j2")
        rendered = template.render(
            region=region,
            encryption_key=encryption_key,
            default_secret_name=default_secret_name,
            cache_path=DEFAULT_CACHE_PATH,
        )

        errors = self.validator.validate_config(yaml.safe_load(rendered))
        if errors:
            raise ConfigValidationError(errors)

        with open(config_path, "w", encoding="utf-8") as f:
            f.write(rendered)
        os.chmod(config_path, 0o600)

        self._config_cache.pop(config_path, None)
        return config_path

    def clear_cache(self) -> None:
        """Clear configuration cache."""
        self._config_cache.clear()
