"""Symmetric encryption for credentials at rest.

Blobs are ``base64(nonce || ciphertext)`` where the cipher is AES-256-GCM,
the key is SHA-256 of the configured secret and the nonce is 12 random
bytes generated per encryption.
"""

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12


class DecryptionError(ValueError):
    """Raised when a blob cannot be decrypted with the given key."""


def derive_key(secret: str) -> bytes:
    return hashlib.sha256(secret.encode("utf-8")).digest()


def encrypt(plaintext: str, secret: str) -> str:
    """Encrypt ``plaintext`` with a key derived from ``secret``.

    Args:
        plaintext: The text to encrypt
        secret: The encryption secret (any length)

    Returns:
        Base64 text of the nonce followed by the ciphertext and tag
    """
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = AESGCM(derive_key(secret)).encrypt(
        nonce, plaintext.encode("utf-8"), None
    )
    return base64.b64encode(nonce + ciphertext).decode("ascii")


def decrypt(blob: str, secret: str) -> str:
    """Reverse :func:`encrypt`.

    Raises:
        DecryptionError: If the blob is malformed, was tampered with or was
            encrypted under a different secret
    """
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError("Encrypted value is not valid base64") from e
    if len(raw) <= NONCE_SIZE:
        raise DecryptionError("Encrypted value is too short")
    nonce, ciphertext = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
    try:
        plaintext = AESGCM(derive_key(secret)).decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise DecryptionError("Encrypted value failed authentication") from e
    return plaintext.decode("utf-8")
