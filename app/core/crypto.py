"""Token encryption using AES-256-GCM.

Encrypted tokens are stored as ``iv:tag:ciphertext`` with each part
base64-encoded, the same layout the web client writes.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.core.exceptions import ConfigurationError, DecryptionError
from app.utils.logging import get_logger

logger = get_logger(__name__)

IV_LENGTH = 12
TAG_LENGTH = 16
KEY_LENGTH = 32


class TokenCipher:
    """Encrypts and decrypts provider tokens with a shared key."""

    def __init__(self, encryption_key: str):
        self._encoded_key = encryption_key

    def _key(self) -> bytes:
        if not self._encoded_key:
            raise ConfigurationError("ENCRYPTION_KEY environment variable is not set")
        try:
            key = base64.b64decode(self._encoded_key, validate=True)
        except binascii.Error as e:
            raise ConfigurationError(
                "ENCRYPTION_KEY must be a valid base64-encoded 32-byte key"
            ) from e
        if len(key) != KEY_LENGTH:
            raise ConfigurationError(
                f"ENCRYPTION_KEY must decode to exactly {KEY_LENGTH} bytes, but got {len(key)} bytes"
            )
        return key

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a token into ``iv:tag:ciphertext``."""
        if not plaintext:
            raise ValueError("Cannot encrypt empty string")
        iv = os.urandom(IV_LENGTH)
        sealed = AESGCM(self._key()).encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return ":".join(
            base64.b64encode(part).decode("ascii") for part in (iv, tag, ciphertext)
        )

    def decrypt(self, encrypted: str) -> str:
        """Decrypt a token produced by :meth:`encrypt`."""
        if not encrypted:
            raise DecryptionError("Cannot decrypt empty string")
        parts = encrypted.split(":")
        if len(parts) != 3:
            raise DecryptionError("Invalid encrypted token format")

        try:
            iv, tag, ciphertext = (base64.b64decode(p, validate=True) for p in parts)
            plaintext = AESGCM(self._key()).decrypt(iv, ciphertext + tag, None)
        except ConfigurationError as e:
            raise DecryptionError(f"Decryption failed: {e.message}") from e
        except (binascii.Error, InvalidTag, ValueError) as e:
            raise DecryptionError(f"Decryption failed: {type(e).__name__}") from e

        return plaintext.decode("utf-8")

    def decrypt_or_plaintext(self, value: str) -> str:
        """Decrypt a stored token, or return it unchanged if it was never encrypted.

        Tokens saved by emulators and older releases are plaintext.
        """
        try:
            return self.decrypt(value)
        except DecryptionError as e:
            logger.debug("crypto.plaintext_fallback", reason=e.message)
            return value
