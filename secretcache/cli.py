"""Main CLI entry point for SecretCache.

Operator commands around the rotation-aware secret cache: fetching a secret
through the cache, checking connectivity to AWS Secrets Manager, inspecting
rotation metadata, clearing cached entries and managing configuration.

Secret values are never printed in clear; payload keys are listed with their
values masked.
"""

from typing import Any, Dict, Optional

import click

from secretcache import __version__
from secretcache.utils.errors import ErrorHandler
from secretcache.utils.logging import setup_logging

MASK = "********"
DB_CREDENTIAL_KEYS = ("username", "password")
DB_LOCATION_KEYS = ("host", "port", "dbname", "database", "engine")


def mask_value(value: Any) -> str:
    """Mask a secret value for display."""
    if value is None or value == "":
        return "(empty)"
    return MASK


def _build_secret_cache(ctx: click.Context):
    from secretcache.config import ConfigManager
    from secretcache.secrets import create_secret_cache

    config_manager = ConfigManager(config_file=ctx.obj["config_file"])
    settings = config_manager.get_settings()
    return create_secret_cache(settings), settings


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "config_file", help="Path to secretcache.yml (default: ./secretcache.yml)")
@click.option("--log-file", help="Log to file in addition to console")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_file: Optional[str], log_file: Optional[str]) -> None:
    """SecretCache - rotation-aware cache for AWS Secrets Manager.

    Secrets are cached encrypted and refetched only around their scheduled
    rotation, keeping Secrets Manager calls near zero in steady state.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_file"] = config_file
    ctx.obj["error_handler"] = ErrorHandler(verbose=verbose)

    setup_logging(verbose=verbose, log_file=log_file)


@cli.command()
@click.argument("secret_id")
@click.option("--keys-only", is_flag=True, help="List key names without masked values")
@click.pass_context
def get(ctx: click.Context, secret_id: str, keys_only: bool) -> None:
    """Fetch a secret through the cache and list its keys."""
    try:
        secret_cache, _ = _build_secret_cache(ctx)
        payload = secret_cache.get_secret(secret_id)

        click.echo(f"Secret: {secret_id} ({len(payload)} keys)")
        for key in payload:
            if keys_only:
                click.echo(f"  - {key}")
            else:
                click.echo(f"  {key}: {mask_value(payload[key])}")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, f"Fetching secret {secret_id}")


@cli.command()
@click.argument("secret_id", required=False)
@click.pass_context
def test(ctx: click.Context, secret_id: Optional[str]) -> None:
    """Test connectivity to AWS Secrets Manager by fetching a secret."""
    try:
        secret_cache, settings = _build_secret_cache(ctx)
    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Loading configuration")
        return

    secret_id = secret_id or settings.default_secret_name
    if not secret_id:
        click.echo("No secret name provided and SECRETCACHE_DEFAULT_SECRET is not configured.")
        click.echo("Usage: secretcache test <secret-name>")
        ctx.exit(1)

    click.echo("Testing AWS Secrets Manager connectivity...")
    click.echo(f"Secret name: {secret_id}")
    click.echo(f"Region: {settings.region}")
    click.echo(f"Cache TTL: {settings.cache_ttl_seconds}s, rotation buffer: {settings.rotation_buffer_days} days")
    click.echo("")

    try:
        payload = secret_cache.get_secret(secret_id)
    except Exception as e:
        from secretcache.utils.errors import create_error_suggestions

        click.echo(f"✗ Failed to fetch secret: {e}")
        click.echo("")
        click.echo("Troubleshooting tips:")
        click.echo(f"  1. Verify environment: region={settings.region}")
        for i, tip in enumerate(create_error_suggestions("fetch_failed", secret_id=secret_id), 2):
            click.echo(f"  {i}. {tip}")
        ctx.exit(1)

    click.echo("✓ Successfully fetched secret from AWS Secrets Manager")
    click.echo("")
    click.echo(f"Secret contains {len(payload)} keys:")
    for key in payload:
        click.echo(f"  - {key}")

    _report_database_credentials(payload)

    click.echo("")
    click.echo("✓ All tests passed!")


def _report_database_credentials(payload: Dict[str, Any]) -> None:
    if not all(key in payload for key in DB_CREDENTIAL_KEYS):
        return

    click.echo("")
    click.echo("Database credentials detected:")
    click.echo(f"  Username: {payload['username']}")
    click.echo(f"  Password: {mask_value(payload['password'])}")

    location = {key: payload[key] for key in DB_LOCATION_KEYS if key in payload}
    if location:
        for key, value in location.items():
            click.echo(f"  {key.capitalize()}: {value}")
    else:
        click.echo("  Note: Host, port, and database should be configured in the application environment")


@cli.command()
@click.argument("secret_id")
@click.pass_context
def clear(ctx: click.Context, secret_id: str) -> None:
    """Clear the cached payload and rotation metadata of a secret."""
    try:
        secret_cache, _ = _build_secret_cache(ctx)
        secret_cache.clear_cache(secret_id)
        click.echo(f"✓ Cleared cache for secret: {secret_id}")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, f"Clearing cache for {secret_id}")


@cli.command()
@click.argument("secret_id")
@click.pass_context
def rotation(ctx: click.Context, secret_id: str) -> None:
    """Show rotation metadata of a secret and the cache TTL it would get now."""
    try:
        from secretcache.secrets import compute_ttl

        secret_cache, settings = _build_secret_cache(ctx)
        metadata = secret_cache.get_rotation_metadata(secret_id)
        now = secret_cache.clock.now()

        click.echo(f"Rotation metadata for {secret_id}:")
        for key, value in metadata.to_dict().items():
            click.echo(f"  {key}: {value if value is not None else '-'}")

        ttl = compute_ttl(metadata.next_rotation, now, settings.rotation_buffer_days, settings.cache_ttl_seconds)
        click.echo(f"Cache TTL if fetched now: {ttl}s")

        if metadata.next_rotation is not None:
            remaining = metadata.next_rotation - now
            if remaining.total_seconds() <= 0:
                click.echo("Rotation date has passed; reads refetch until a new schedule is reported")
            else:
                click.echo(f"Next rotation in {remaining.days} days")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, f"Inspecting rotation for {secret_id}")


@cli.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.pass_context
def config(ctx: click.Context) -> None:
    """Configuration management."""
    pass


@config.command("init")
@click.option("--region", default="us-east-1", help="AWS region")
@click.option("--default-secret", help="Secret used by 'secretcache test'")
@click.option("--force", is_flag=True, help="Overwrite an existing secretcache.yml")
@click.pass_context
def config_init(ctx: click.Context, region: str, default_secret: Optional[str], force: bool) -> None:
    """Create secretcache.yml with a freshly generated encryption key."""
    try:
        from secretcache.config import ConfigManager
        from secretcache.secrets import PayloadCipher

        config_manager = ConfigManager()
        config_path = config_manager.initialize_config(
            encryption_key=PayloadCipher.generate_key().decode("ascii"),
            region=region,
            default_secret_name=default_secret,
            force=force,
        )
        click.echo(f"✓ Created configuration: {config_path}")
        click.echo("Keep this file private: it contains the cache encryption key.")

    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Initializing configuration")


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate configuration file and environment overrides."""
    from secretcache.config import ConfigManager, ConfigValidationError
    from secretcache.utils.errors import format_validation_errors

    config_manager = ConfigManager(config_file=ctx.obj["config_file"])
    config_path = config_manager.get_config_path()

    try:
        settings = config_manager.get_settings()
    except ConfigValidationError as e:
        click.echo(format_validation_errors(e.errors), err=True)
        ctx.exit(1)
    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Validating configuration")
        return

    click.echo(f"✓ Configuration is valid ({config_path or 'defaults and environment only'})")
    click.echo(f"  Region: {settings.region}")
    click.echo(f"  Cache backend: {settings.cache_backend}")
    click.echo(f"  Cache TTL: {settings.cache_ttl_seconds}s")
    click.echo(f"  Rotation buffer: {settings.rotation_buffer_days} days")
    click.echo(f"  Encryption key: {'configured' if settings.encryption_key else 'ephemeral'}")


if __name__ == "__main__":
    cli()
