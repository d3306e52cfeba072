"""
Key vault for sealednotes.

The KeyVault ties the key hierarchy primitives to the derived-KEK cache so a
passphrase is stretched once per session and later unlocks reuse the KEK.
"""

import logging
from typing import Optional

from .config import KdfConfig
from .crypto import (
    CreatedDek,
    create_wrapped_dek,
    rewrap_dek,
    unwrap_dek_with_kek,
)
from .keys import derive_kek_from_passphrase
from .models import KdfParams, WrappedDek
from .storage import DerivedKekCache
from .types import UnwrapError

logger = logging.getLogger(__name__)


class KeyVault:
    """
    High-level manager for a user's data-encryption key.

    Example usage:
        ```python
        vault = KeyVault()

        # Account creation
        created = vault.create("alice", "correct horse")
        save_record(created.wrapped.to_dict())

        # Later in the same session
        dek = vault.unlock_cached("alice", wrapped)
        if dek is None:
            dek = vault.unlock("alice", passphrase, wrapped)

        # Logout
        vault.lock()
        ```
    """

    def __init__(
        self,
        cache: Optional[DerivedKekCache] = None,
        kdf_params: Optional[KdfParams] = None,
    ) -> None:
        """
        Create a key vault.

        Args:
            cache: KEK cache shared by whatever issues decrypt calls
                (default: a fresh in-memory cache).
            kdf_params: Parameters for newly created keys
                (default: KdfConfig defaults).
        """
        self.cache = cache if cache is not None else DerivedKekCache()
        self.kdf_params = kdf_params or KdfConfig().params()

    def create(self, username: str, passphrase: str) -> CreatedDek:
        """Create a new wrapped DEK for a user and cache its KEK."""
        created = create_wrapped_dek(passphrase, self.kdf_params)
        self.cache.put(username, created.wrapped.kdf_salt, created.kek)
        logger.info("Created vault key for %s", username)
        return created

    def unlock(self, username: str, passphrase: str, wrapped: WrappedDek) -> bytes:
        """
        Derive the KEK from the passphrase, unwrap the DEK and cache the KEK.

        Raises:
            KeyDerivationError: Malformed salt or parameters in the record
            UnwrapError: Wrong passphrase or tampered record
        """
        kek = derive_kek_from_passphrase(passphrase, wrapped.kdf_salt, wrapped.kdf_params)
        try:
            dek_raw = unwrap_dek_with_kek(kek, wrapped)
        except UnwrapError:
            logger.info("Vault unlock failed for %s", username)
            raise

        self.cache.put(username, wrapped.kdf_salt, kek)
        return dek_raw

    def unlock_cached(self, username: str, wrapped: WrappedDek) -> Optional[bytes]:
        """
        Unwrap with the cached KEK, skipping key derivation.

        Returns:
            The DEK, or None when there is no usable cache entry for this record.

        Raises:
            UnwrapError: The cached KEK no longer opens the record; the entry
                is evicted first.
        """
        entry = self.cache.get(username)
        if entry is None or entry.kdf_salt != wrapped.kdf_salt:
            return None

        try:
            return unwrap_dek_with_kek(entry.kek, wrapped)
        except UnwrapError:
            current = self.cache.get(username)
            if current is not None and current.kdf_salt == wrapped.kdf_salt:
                self.cache.clear(username)
            raise

    def change_passphrase(self, username: str, dek_raw: bytes, new_passphrase: str) -> WrappedDek:
        """Re-wrap the DEK under a new passphrase and salt; caches the new KEK."""
        created = rewrap_dek(dek_raw, new_passphrase, self.kdf_params)
        self.cache.put(username, created.wrapped.kdf_salt, created.kek)
        logger.info("Rotated vault key wrapping for %s", username)
        return created.wrapped

    def lock(self, username: Optional[str] = None) -> None:
        """Forget cached KEKs for one user, or for everyone on logout."""
        self.cache.clear(username)
