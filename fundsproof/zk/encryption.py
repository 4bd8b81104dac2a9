"""
Staged Input Encryption
=======================

AES-256-GCM under a PBKDF2-HMAC-SHA256 key derived from a password.

Blob format (base64):
    version (1) || salt (16) || nonce (12) || ciphertext || tag (16)

The staged input id is passed as associated data, so a blob only
decrypts under the id it was staged with.

Version: 0.1.0
"""

import base64
import binascii
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from fundsproof.config import settings
from fundsproof.zk.errors import ErrorCode, SecurityError


BLOB_VERSION = 1
SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32

# Length of generated session passwords, in bytes of entropy
SESSION_PASSWORD_BYTES = 32


def _decryption_failed(reason: str) -> SecurityError:
    return SecurityError(
        f"Staged input could not be decrypted: {reason}",
        code=ErrorCode.DECRYPTION_FAILED,
    )


def generate_password() -> str:
    """Random URL-safe session password."""
    return secrets.token_urlsafe(SESSION_PASSWORD_BYTES)


class InputCipher:
    """
    Password-based authenticated encryption for staged inputs.

    Usage:
        cipher = InputCipher()
        blob = cipher.encrypt(b"...", "password", associated_data=b"zkin-1")
        cipher.decrypt(blob, "password", associated_data=b"zkin-1")
    """

    def __init__(self, iterations: int | None = None) -> None:
        self.iterations = iterations or settings.zk.kdf_iterations

    def derive_key(self, password: str, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=salt,
            iterations=self.iterations,
        )
        return kdf.derive(password.encode("utf-8"))

    def encrypt(
        self,
        plaintext: bytes,
        password: str,
        associated_data: bytes | None = None,
    ) -> str:
        """Encrypt ``plaintext`` and return the base64 blob."""
        salt = secrets.token_bytes(SALT_SIZE)
        nonce = secrets.token_bytes(NONCE_SIZE)
        key = self.derive_key(password, salt)

        ciphertext = AESGCM(key).encrypt(nonce, plaintext, associated_data)
        blob = bytes([BLOB_VERSION]) + salt + nonce + ciphertext
        return base64.b64encode(blob).decode("ascii")

    def decrypt(
        self,
        blob: str,
        password: str,
        associated_data: bytes | None = None,
    ) -> bytes:
        """
        Decrypt a blob produced by ``encrypt``.

        Raises:
            SecurityError: DECRYPTION_FAILED on a wrong password, a tampered
                or truncated blob, or an unknown blob version
        """
        try:
            raw = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError) as e:
            raise _decryption_failed("malformed blob") from e

        if len(raw) < 1 + SALT_SIZE + NONCE_SIZE + TAG_SIZE:
            raise _decryption_failed("blob too short")
        if raw[0] != BLOB_VERSION:
            raise _decryption_failed(f"unsupported blob version {raw[0]}")

        offset = 1
        salt = raw[offset : offset + SALT_SIZE]
        offset += SALT_SIZE
        nonce = raw[offset : offset + NONCE_SIZE]
        offset += NONCE_SIZE
        ciphertext = raw[offset:]

        key = self.derive_key(password, salt)
        try:
            return AESGCM(key).decrypt(nonce, ciphertext, associated_data)
        except InvalidTag as e:
            raise _decryption_failed("authentication failed") from e
