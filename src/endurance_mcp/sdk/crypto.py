"""
AES-256-GCM cipher for OAuth tokens at rest.

Stored format: hex(iv) ":" hex(auth_tag) ":" hex(ciphertext), with a fresh
16-byte IV per call. The key is the 32-byte provider secret from configuration.
"""

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from endurance_mcp.errors import ConfigurationError, TokenDecryptionError

IV_BYTES = 16
TAG_BYTES = 16
KEY_BYTES = 32


class TokenCipher:
    """Encrypts and decrypts tokens with one provider key.

    Usage:
        cipher = TokenCipher(config.token_encryption_key)
        stored = cipher.encrypt("access-token")
        cipher.decrypt(stored)  # "access-token"
    """

    def __init__(self, key_hex: str):
        try:
            key = bytes.fromhex(key_hex or "")
        except ValueError:
            raise ConfigurationError("Token encryption key must be hex encoded")
        if len(key) != KEY_BYTES:
            raise ConfigurationError(
                f"Token encryption key must be {KEY_BYTES} bytes ({KEY_BYTES * 2} hex chars), got {len(key)}"
            )
        self._aead = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_BYTES)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)
        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, stored: str) -> str:
        """Decrypt a stored token.

        Raises:
            TokenDecryptionError: If the format is wrong or the auth tag
                does not verify (tampered data or wrong key).
        """
        parts = stored.split(":")
        if len(parts) != 3:
            raise TokenDecryptionError("Invalid encrypted token format")

        try:
            iv, tag, ciphertext = (bytes.fromhex(p) for p in parts)
        except ValueError:
            raise TokenDecryptionError("Invalid encrypted token format")
        if len(iv) != IV_BYTES or len(tag) != TAG_BYTES:
            raise TokenDecryptionError("Invalid encrypted token format")

        try:
            plaintext = self._aead.decrypt(iv, ciphertext + tag, None)
        except InvalidTag:
            raise TokenDecryptionError("Stored token failed authentication")
        return plaintext.decode("utf-8")
