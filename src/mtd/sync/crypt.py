"""
Password-based encryption for everything MTD sends over the network.

The key is derived from the shared password with Argon2id and a fresh
random salt; the payload is sealed with AES-256-GCM under a fresh
random nonce. Encrypting the same message twice never produces the
same ciphertext.

Ciphertext layout:
    salt (16 bytes) | nonce (12 bytes) | AES-GCM ciphertext + tag
"""

from __future__ import annotations

import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

from ..errors import DecryptingError, EncryptingError

SALT_SIZE = 16
NONCE_SIZE = 12
KEY_SIZE = 32
HEADER_SIZE = SALT_SIZE + NONCE_SIZE

# Argon2 defaults: 19 MiB, two passes, one lane.
ARGON2_MEMORY_KIB = 19 * 1024
ARGON2_ITERATIONS = 2
ARGON2_LANES = 1


def _derive_key(passwd: bytes, salt: bytes) -> bytes:
    """Derive a 256-bit key from a password with Argon2id.

    Args:
        passwd: Shared password.
        salt: Random per-message salt.

    Returns:
        Derived key bytes.
    """
    kdf = Argon2id(
        salt=salt,
        length=KEY_SIZE,
        iterations=ARGON2_ITERATIONS,
        lanes=ARGON2_LANES,
        memory_cost=ARGON2_MEMORY_KIB,
    )
    return kdf.derive(passwd)


def encrypt(msg: bytes, passwd: bytes) -> bytes:
    """Encrypt a message with the given password.

    Args:
        msg: Plaintext bytes.
        passwd: Shared password.

    Returns:
        ``salt | nonce | ciphertext`` bytes.

    Raises:
        EncryptingError: If key derivation or encryption failed.
    """
    salt = secrets.token_bytes(SALT_SIZE)
    nonce = secrets.token_bytes(NONCE_SIZE)
    try:
        key = _derive_key(passwd, salt)
        ciphertext = AESGCM(key).encrypt(nonce, msg, None)
    except (ValueError, TypeError, OverflowError) as exc:
        raise EncryptingError("Encrypting data failed.") from exc
    return salt + nonce + ciphertext


def decrypt(ciphertext: bytes, passwd: bytes) -> bytes:
    """Decrypt a ciphertext produced by :func:`encrypt`.

    Args:
        ciphertext: ``salt | nonce | ciphertext`` bytes.
        passwd: Shared password.

    Returns:
        Plaintext bytes.

    Raises:
        DecryptingError: On a wrong password, tampered or truncated data.
    """
    if len(ciphertext) < HEADER_SIZE:
        raise DecryptingError("Decrypting data failed: ciphertext too short.")

    salt = ciphertext[:SALT_SIZE]
    nonce = ciphertext[SALT_SIZE:HEADER_SIZE]
    try:
        key = _derive_key(passwd, salt)
        return AESGCM(key).decrypt(nonce, ciphertext[HEADER_SIZE:], None)
    except (InvalidTag, ValueError, TypeError) as exc:
        raise DecryptingError("Decrypting data failed.") from exc
