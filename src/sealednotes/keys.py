"""Passphrase key derivation for the sealednotes key hierarchy."""

import os
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .models import KdfParams
from .types import (
    DEK_SIZE,
    KDF_PBKDF2_SHA256,
    MIN_SALT_SIZE,
    SALT_SIZE,
    KeyDerivationError,
)


class DerivedKek:
    """
    Opaque key-encryption key handle.

    Only the AES-GCM cipher built from the derived bytes is kept; the raw
    key material cannot be read back, serialized or pickled.
    """

    __slots__ = ("_cipher",)

    def __init__(self, key: bytes) -> None:
        self._cipher = AESGCM(key)

    def encrypt(self, nonce: bytes, data: bytes, associated_data: bytes) -> bytes:
        return self._cipher.encrypt(nonce, data, associated_data)

    def decrypt(self, nonce: bytes, data: bytes, associated_data: bytes) -> bytes:
        return self._cipher.decrypt(nonce, data, associated_data)

    def __repr__(self) -> str:
        return "DerivedKek(<redacted>)"

    def __bytes__(self) -> bytes:
        raise TypeError("DerivedKek cannot be exported")

    def __reduce__(self):
        raise TypeError("DerivedKek cannot be serialized")


def derive_kek_from_passphrase(
    passphrase: str,
    kdf_salt: bytes,
    params: Optional[KdfParams] = None,
) -> DerivedKek:
    """
    Derive a key-encryption key from a passphrase and per-user salt.

    Args:
        passphrase: The user's vault passphrase
        kdf_salt: Per-user random salt (at least 16 bytes)
        params: KDF parameters (default: scrypt with library defaults)

    Returns:
        Opaque DerivedKek handle

    Raises:
        KeyDerivationError: If the salt or parameters are malformed
    """
    params = params or KdfParams()
    params.validate()

    if not isinstance(kdf_salt, (bytes, bytearray)):
        raise KeyDerivationError("Salt must be bytes")
    if len(kdf_salt) < MIN_SALT_SIZE:
        raise KeyDerivationError(
            f"Salt must be at least {MIN_SALT_SIZE} bytes, got {len(kdf_salt)}"
        )

    secret = passphrase.encode("utf-8")
    salt = bytes(kdf_salt)

    if params.algorithm == KDF_PBKDF2_SHA256:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=params.length,
            salt=salt,
            iterations=params.iterations,
        )
    else:
        kdf = Scrypt(salt=salt, length=params.length, n=params.n, r=params.r, p=params.p)

    try:
        derived_key = kdf.derive(secret)
    except (ValueError, MemoryError) as e:
        raise KeyDerivationError("Key derivation failed") from e

    return DerivedKek(derived_key)


def generate_salt() -> bytes:
    """Generate a fresh random KDF salt."""
    return os.urandom(SALT_SIZE)


def generate_dek() -> bytes:
    """Generate a fresh random 256-bit data-encryption key."""
    return os.urandom(DEK_SIZE)
