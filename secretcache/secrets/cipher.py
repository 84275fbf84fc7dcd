"""Encryption of cached secret payloads."""

import json
from typing import Any, Dict, Union

from cryptography.fernet import Fernet, InvalidToken

from ..utils.errors import DecryptError, SecurityError


class PayloadCipher:
    """Encrypts secret payloads before they reach the cache backend."""

    def __init__(self, key: Union[bytes, str]):
        """
        Initialize payload cipher.

        Args:
            key: Fernet key (urlsafe base64, 32 bytes decoded)

        Raises:
            SecurityError: If the key is not a valid Fernet key
        """
        if isinstance(key, str):
            key = key.encode("ascii")
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise SecurityError(
                "Invalid cache encryption key",
                details=str(e),
                suggestions=["Generate a key with 'secretcache config init' or Fernet.generate_key()"],
            ) from e

    @staticmethod
    def generate_key() -> bytes:
        return Fernet.generate_key()

    def encrypt(self, payload: Dict[str, Any]) -> bytes:
        plaintext = json.dumps(payload, separators=(",", ":"))
        return self._fernet.encrypt(plaintext.encode("utf-8"))

    def decrypt(self, ciphertext: bytes) -> Dict[str, Any]:
        """
        Decrypt a cached payload.

        Raises:
            DecryptError: On a wrong key, tampered ciphertext, or a plaintext
                that is not a JSON object
        """
        try:
            plaintext = self._fernet.decrypt(ciphertext)
            payload = json.loads(plaintext.decode("utf-8"))
        except InvalidToken as e:
            raise DecryptError("Cached payload failed authentication") from e
        except (UnicodeDecodeError, ValueError, TypeError) as e:
            raise DecryptError("Cached payload is not decodable") from e

        if not isinstance(payload, dict):
            raise DecryptError("Cached payload is not an object")
        return payload
