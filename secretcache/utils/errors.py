"""Error handling utilities for SecretCache."""

import sys
import traceback
from enum import Enum
from typing import Optional

import click


class SecretCacheError(Exception):
    """Base exception for SecretCache errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestions: Optional[list] = None,
    ):
        self.message = message
        self.details = details
        self.suggestions = suggestions or []
        super().__init__(message)


class ConfigurationError(SecretCacheError):
    """Raised when configuration is invalid or missing."""

    pass


class SecurityError(SecretCacheError):
    """Raised when encryption setup fails."""

    pass


class FetchErrorKind(Enum):
    """Why a secret could not be returned to the caller."""

    NOT_FOUND = "not_found"
    INVALID_JSON = "invalid_json"
    REMOTE = "remote"
    METADATA_UNAVAILABLE = "metadata_unavailable"


class FetchError(SecretCacheError):
    """Raised when a secret cannot be fetched from the remote store.

    Carries the secret identifier and, for remote failures, the error code and
    message reported by the remote store. Never carries the secret payload.
    """

    def __init__(
        self,
        secret_id: str,
        kind: FetchErrorKind,
        message: str,
        code: Optional[str] = None,
        remote_message: Optional[str] = None,
    ):
        self.secret_id = secret_id
        self.kind = kind
        self.code = code
        self.remote_message = remote_message
        super().__init__(
            message,
            suggestions=create_error_suggestions("fetch_failed", secret_id=secret_id),
        )


class RemoteError(Exception):
    """Raised by the remote store adapter when a call is rejected or fails."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class DecryptError(Exception):
    """Raised when cached ciphertext cannot be decrypted."""

    pass


class ErrorHandler:
    """Handles and formats errors for user-friendly display."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def handle_error(self, error: Exception, context: Optional[str] = None) -> None:
        """
        Handle and display error with appropriate formatting.

        Args:
            error: Exception to handle
            context: Optional context about when/where error occurred
        """
        if isinstance(error, SecretCacheError):
            self._handle_secretcache_error(error, context)
        else:
            self._handle_generic_error(error, context)

    def _handle_secretcache_error(self, error: SecretCacheError, context: Optional[str]) -> None:
        """Handle SecretCache-specific errors."""
        click.echo(f"✗ {error.message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if error.details:
            click.echo(f"Details: {error.details}", err=True)

        if error.suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in error.suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def _handle_generic_error(self, error: Exception, context: Optional[str]) -> None:
        """Handle generic Python exceptions."""
        error_type = type(error).__name__

        if isinstance(error, FileNotFoundError):
            message = f"File not found: {error}"
            suggestions = [
                "Check that the file path is correct",
                "Ensure the file exists and is readable",
            ]
        elif isinstance(error, PermissionError):
            message = f"Permission denied: {error}"
            suggestions = [
                "Check file/directory permissions",
                "Check the cache directory is owned by the current user",
            ]
        elif isinstance(error, ConnectionError):
            message = f"Connection failed: {error}"
            suggestions = create_error_suggestions("network_unreachable")
        else:
            message = f"{error_type}: {error}"
            suggestions = []

        click.echo(f"✗ {message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def exit_with_error(self, error: Exception, context: Optional[str] = None, exit_code: int = 1) -> None:
        """Handle error and exit with specified code."""
        self.handle_error(error, context)
        sys.exit(exit_code)


def create_error_suggestions(error_type: str, **kwargs) -> list:
    """
    Create contextual error suggestions based on error type and context.

    Args:
        error_type: Type of error
        **kwargs: Additional context information (secret_id, region)

    Returns:
        list: List of suggestion strings
    """
    secret_id = kwargs.get("secret_id", "<secret-id>")
    region = kwargs.get("region")

    suggestions = {
        "fetch_failed": [
            "Verify AWS credentials are configured (AWS_PROFILE, AWS_ACCESS_KEY_ID or an IAM role)",
            "Check IAM permissions: secretsmanager:GetSecretValue and secretsmanager:DescribeSecret",
            f"Verify secret name is correct: {secret_id}",
        ],
        "access_denied": [
            "Check IAM permissions for the calling role",
            "Verify the secret's resource policy allows this principal",
            "Ensure the KMS key policy grants kms:Decrypt",
        ],
        "network_unreachable": [
            "Check your internet connection",
            "Verify the Secrets Manager endpoint is reachable",
            "Check if you're behind a proxy or firewall",
        ],
        "configuration_invalid": [
            "Check YAML syntax in secretcache.yml",
            "Validate configuration values with 'secretcache config validate'",
        ],
    }

    result = list(suggestions.get(error_type, []))
    if error_type == "fetch_failed" and region:
        result.append(f"Confirm the secret exists in region {region}")

    return result


def format_validation_errors(errors: list) -> str:
    """
    Format validation errors for display.

    Args:
        errors: List of validation error messages

    Returns:
        str: Formatted error message
    """
    if not errors:
        return "No validation errors"

    if len(errors) == 1:
        return f"Validation error: {errors[0]}"

    formatted = "Validation errors:\n"
    for i, error in enumerate(errors, 1):
        formatted += f"  {i}. {error}\n"

    return formatted.strip()
