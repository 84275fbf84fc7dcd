"""Rotation-aware, encrypted client-side cache for AWS Secrets Manager."""

__version__ = "0.1.0"
__author__ = "SecretCache Team"
