"""AWS Secrets Manager adapter.

Wraps a boto3 ``secretsmanager`` client behind the two calls the cache needs
and normalises every failure into a single ``RemoteError``. No retries happen
here; the caller owns retry policy.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils.clock import ensure_utc
from ..utils.errors import RemoteError

logger = logging.getLogger(__name__)


@dataclass
class RemoteSecretValue:
    """Result of a GetSecretValue call."""

    payload: Optional[str]
    found: bool


@dataclass
class RemoteRotationInfo:
    """Rotation fields of a DescribeSecret call."""

    rotation_enabled: bool
    next_rotation: Optional[datetime] = None
    last_rotated: Optional[datetime] = None


class RemoteSecretStore:
    """Thin client for the remote secret store."""

    def __init__(
        self,
        region_name: str = "us-east-1",
        client: Optional[Any] = None,
        endpoint_url: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
    ):
        """
        Initialize the remote store client.

        Args:
            region_name: AWS region
            client: Pre-built boto3 client (used as-is when given)
            endpoint_url: Custom endpoint (e.g. LocalStack)
            aws_access_key_id: Access key ID (IAM role / default chain if None)
            aws_secret_access_key: Secret access key
        """
        self.region_name = region_name

        if client is not None:
            self._client = client
            return

        client_kwargs = {"region_name": region_name}
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        if aws_access_key_id is not None and aws_secret_access_key is not None:
            client_kwargs["aws_access_key_id"] = aws_access_key_id
            client_kwargs["aws_secret_access_key"] = aws_secret_access_key

        self._client = boto3.client("secretsmanager", **client_kwargs)
        logger.debug(f"Secrets Manager client created for region {region_name}")

    def fetch_secret_value(self, secret_id: str) -> RemoteSecretValue:
        """
        Fetch the current value of a secret.

        Raises:
            RemoteError: If the remote store rejects or fails the call
        """
        response = self._call("get_secret_value", secret_id)
        if "SecretString" not in response or response["SecretString"] is None:
            return RemoteSecretValue(payload=None, found=False)
        return RemoteSecretValue(payload=response["SecretString"], found=True)

    def describe_secret(self, secret_id: str) -> RemoteRotationInfo:
        """
        Fetch the rotation schedule of a secret.

        Raises:
            RemoteError: If the remote store rejects or fails the call
        """
        response = self._call("describe_secret", secret_id)
        return RemoteRotationInfo(
            rotation_enabled=bool(response.get("RotationEnabled", False)),
            next_rotation=_as_utc(response.get("NextRotationDate")),
            last_rotated=_as_utc(response.get("LastRotatedDate")),
        )

    def _call(self, operation: str, secret_id: str) -> dict:
        try:
            return getattr(self._client, operation)(SecretId=secret_id)
        except ClientError as e:
            error = e.response.get("Error", {})
            raise RemoteError(
                error.get("Code", "Unknown"),
                error.get("Message", str(e)),
            ) from e
        except BotoCoreError as e:
            raise RemoteError("BotoCoreError", str(e)) from e


def _as_utc(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return ensure_utc(value)
    return None
