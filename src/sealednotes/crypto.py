"""Wrapping of the data-encryption key and note payload encryption."""

import base64
import json
import os
from dataclasses import dataclass
from typing import Any, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .keys import DerivedKek, derive_kek_from_passphrase, generate_dek, generate_salt
from .models import EncryptedPayload, KdfParams, WrappedDek
from .types import (
    DEK_SIZE,
    NONCE_SIZE,
    PAYLOAD_AAD,
    WRAP_AAD_PREFIX,
    WRAPPED_DEK_SIZE,
    DecryptionError,
    EncryptionError,
    UnwrapError,
)


@dataclass
class CreatedDek:
    """Result of creating a new vault key."""
    kek: DerivedKek
    wrapped: WrappedDek
    dek_raw: bytes


def _wrap_aad(kdf_salt: bytes, params: KdfParams) -> bytes:
    """Associated data binding the wrap to its salt and KDF parameters."""
    canonical = json.dumps(params.to_dict(), sort_keys=True, separators=(",", ":"))
    salt = base64.b64encode(bytes(kdf_salt))
    return WRAP_AAD_PREFIX + b"|" + salt + b"|" + canonical.encode("utf-8")


def wrap_dek(
    kek: DerivedKek,
    dek_raw: bytes,
    kdf_salt: bytes,
    params: KdfParams,
) -> WrappedDek:
    """
    Wrap a DEK under a KEK with AES-256-GCM and a fresh nonce.

    Args:
        kek: KEK derived from the passphrase and `kdf_salt`
        dek_raw: 32-byte data-encryption key
        kdf_salt: Salt the KEK was derived with
        params: KDF parameters the KEK was derived with

    Returns:
        WrappedDek record ready to persist
    """
    if len(dek_raw) != DEK_SIZE:
        raise EncryptionError(f"DEK must be {DEK_SIZE} bytes, got {len(dek_raw)}")

    nonce = os.urandom(NONCE_SIZE)
    wrapped_key = kek.encrypt(nonce, bytes(dek_raw), _wrap_aad(kdf_salt, params))

    return WrappedDek(
        kdf_salt=bytes(kdf_salt),
        wrapped_key=wrapped_key,
        wrap_nonce=nonce,
        kdf_params=params,
    )


def create_wrapped_dek(passphrase: str, params: Optional[KdfParams] = None) -> CreatedDek:
    """
    Create a new vault key: fresh salt, fresh DEK, wrapped under the derived KEK.

    Used once at account/vault creation. The caller persists `wrapped` and
    can use `dek_raw` immediately.
    """
    params = params or KdfParams()
    salt = generate_salt()
    kek = derive_kek_from_passphrase(passphrase, salt, params)
    dek_raw = generate_dek()

    wrapped = wrap_dek(kek, dek_raw, salt, params)
    return CreatedDek(kek=kek, wrapped=wrapped, dek_raw=dek_raw)


def unwrap_dek(passphrase: str, wrapped: WrappedDek) -> bytes:
    """
    Re-derive the KEK from the passphrase and stored salt, then unwrap.

    Raises:
        KeyDerivationError: If the stored salt or parameters are malformed
        UnwrapError: Wrong passphrase or tampered record
    """
    kek = derive_kek_from_passphrase(passphrase, wrapped.kdf_salt, wrapped.kdf_params)
    return unwrap_dek_with_kek(kek, wrapped)


def unwrap_dek_with_kek(kek: DerivedKek, wrapped: WrappedDek) -> bytes:
    """
    Unwrap using an already derived (cached) KEK.

    Raises:
        UnwrapError: Same error as `unwrap_dek` for any mismatch or tamper
    """
    if len(wrapped.wrap_nonce) != NONCE_SIZE or len(wrapped.wrapped_key) != WRAPPED_DEK_SIZE:
        raise UnwrapError()

    try:
        dek_raw = kek.decrypt(
            wrapped.wrap_nonce,
            wrapped.wrapped_key,
            _wrap_aad(wrapped.kdf_salt, wrapped.kdf_params),
        )
    except InvalidTag:
        raise UnwrapError() from None

    if len(dek_raw) != DEK_SIZE:
        raise UnwrapError()
    return dek_raw


def rewrap_dek(
    dek_raw: bytes,
    new_passphrase: str,
    params: Optional[KdfParams] = None,
) -> CreatedDek:
    """
    Re-wrap an existing DEK under a new passphrase with a fresh salt.

    Note ciphertexts stay valid because the DEK itself does not change.
    """
    params = params or KdfParams()
    salt = generate_salt()
    kek = derive_kek_from_passphrase(new_passphrase, salt, params)

    wrapped = wrap_dek(kek, dek_raw, salt, params)
    return CreatedDek(kek=kek, wrapped=wrapped, dek_raw=bytes(dek_raw))


def encrypt_json(dek_raw: bytes, value: Any) -> EncryptedPayload:
    """
    Encrypt a JSON-serializable note payload with the DEK.

    Args:
        dek_raw: 32-byte data-encryption key
        value: JSON-serializable value

    Returns:
        EncryptedPayload with a fresh nonce
    """
    if len(dek_raw) != DEK_SIZE:
        raise EncryptionError(f"DEK must be {DEK_SIZE} bytes, got {len(dek_raw)}")

    try:
        plaintext = json.dumps(value).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncryptionError(f"Payload is not JSON serializable: {e}") from e

    nonce = os.urandom(NONCE_SIZE)
    ciphertext = AESGCM(bytes(dek_raw)).encrypt(nonce, plaintext, PAYLOAD_AAD)

    return EncryptedPayload(payload_nonce=nonce, payload_ciphertext=ciphertext)


def decrypt_json(dek_raw: bytes, payload: EncryptedPayload) -> Any:
    """Decrypt a note payload produced by `encrypt_json`."""
    if len(dek_raw) != DEK_SIZE:
        raise DecryptionError(f"DEK must be {DEK_SIZE} bytes, got {len(dek_raw)}")

    try:
        cipher = AESGCM(bytes(dek_raw))
        plaintext = cipher.decrypt(payload.payload_nonce, payload.payload_ciphertext, PAYLOAD_AAD)
    except (InvalidTag, ValueError) as e:
        raise DecryptionError("Decryption failed - wrong key or corrupted payload") from e

    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecryptionError("Decrypted payload is not valid JSON") from e
