"""Tests for the derived KEK cache and the key vault."""

import threading

import pytest
from sealednotes.crypto import create_wrapped_dek, rewrap_dek, unwrap_dek, wrap_dek
from sealednotes.keys import derive_kek_from_passphrase
from sealednotes.storage import DerivedKekCache, DerivedKekCacheEntry
from sealednotes.types import UnwrapError
from sealednotes.vault import KeyVault
from .test_vectors import ALICE_PASSPHRASE, BOB_PASSPHRASE, FAST_SCRYPT, FIXED_SALT


class TestDerivedKekCache:
    """Test the in-memory KEK cache."""

    @pytest.fixture
    def kek(self):
        return derive_kek_from_passphrase(ALICE_PASSPHRASE, FIXED_SALT, FAST_SCRYPT)

    def test_get_missing(self) -> None:
        cache = DerivedKekCache()
        assert cache.get("alice") is None
        assert "alice" not in cache

    def test_set_and_get(self, kek) -> None:
        cache = DerivedKekCache(clock=lambda: 42.0)
        stored = cache.set("alice", DerivedKekCacheEntry(kdf_salt=FIXED_SALT, kek=kek))

        entry = cache.get("alice")
        assert entry is stored
        assert entry.kdf_salt == FIXED_SALT
        assert entry.kek is kek
        assert entry.cached_at == 42.0
        assert len(cache) == 1

    def test_set_leaves_caller_entry_untouched(self, kek) -> None:
        cache = DerivedKekCache(clock=lambda: 42.0)
        original = DerivedKekCacheEntry(kdf_salt=FIXED_SALT, kek=kek)

        cache.set("alice", original)

        assert original.cached_at == 0.0
        assert cache.get("alice") is not original

    def test_last_writer_wins(self, kek) -> None:
        cache = DerivedKekCache()
        cache.put("alice", FIXED_SALT, kek)
        cache.put("alice", bytes(16), kek)

        assert cache.get("alice").kdf_salt == bytes(16)
        assert len(cache) == 1

    def test_clear_one_user(self, kek) -> None:
        cache = DerivedKekCache()
        cache.put("alice", FIXED_SALT, kek)
        cache.put("bob", FIXED_SALT, kek)

        cache.clear("alice")

        assert cache.get("alice") is None
        assert cache.get("bob") is not None

    def test_clear_all(self, kek) -> None:
        cache = DerivedKekCache()
        cache.put("alice", FIXED_SALT, kek)
        cache.put("bob", FIXED_SALT, kek)

        cache.clear()

        assert len(cache) == 0
        assert cache.usernames() == []

    def test_clear_hooks(self, kek) -> None:
        cleared = []
        cache = DerivedKekCache(on_clear=[cleared.append])
        cache.put("alice", FIXED_SALT, kek)
        cache.put("bob", FIXED_SALT, kek)

        cache.clear("alice")
        cache.clear("nobody")
        cache.clear()
        cache.clear()

        assert cleared == [["alice"], ["bob"]]

    def test_entry_repr_hides_kek(self, kek) -> None:
        entry = DerivedKekCacheEntry(kdf_salt=FIXED_SALT, kek=kek)
        assert "kek" not in repr(entry)

    def test_concurrent_writers(self, kek) -> None:
        """Concurrent set/clear never corrupts the map."""
        cache = DerivedKekCache()

        def worker(n: int) -> None:
            for i in range(200):
                cache.put(f"user-{n}-{i % 5}", FIXED_SALT, kek)
                cache.get(f"user-{n}-{i % 5}")
                if i % 50 == 0:
                    cache.clear(f"user-{n}-0")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == len(cache.usernames())
        assert len(cache) <= 8 * 5


class TestKeyVault:
    """Test the high-level vault flow."""

    @pytest.fixture
    def vault(self) -> KeyVault:
        return KeyVault(kdf_params=FAST_SCRYPT)

    def test_create_caches_kek(self, vault: KeyVault) -> None:
        created = vault.create("alice", ALICE_PASSPHRASE)

        assert "alice" in vault.cache
        assert vault.unlock_cached("alice", created.wrapped) == created.dek_raw

    def test_unlock_then_cached(self, vault: KeyVault) -> None:
        created = create_wrapped_dek(ALICE_PASSPHRASE, FAST_SCRYPT)

        assert vault.unlock_cached("alice", created.wrapped) is None
        assert vault.unlock("alice", ALICE_PASSPHRASE, created.wrapped) == created.dek_raw
        assert vault.unlock_cached("alice", created.wrapped) == created.dek_raw

    def test_wrong_passphrase_does_not_cache(self, vault: KeyVault) -> None:
        created = create_wrapped_dek(ALICE_PASSPHRASE, FAST_SCRYPT)

        with pytest.raises(UnwrapError):
            vault.unlock("alice", BOB_PASSPHRASE, created.wrapped)

        assert "alice" not in vault.cache

    def test_cached_salt_mismatch_returns_none(self, vault: KeyVault) -> None:
        vault.create("alice", ALICE_PASSPHRASE)
        other = create_wrapped_dek(ALICE_PASSPHRASE, FAST_SCRYPT)

        assert vault.unlock_cached("alice", other.wrapped) is None
        assert "alice" in vault.cache

    def test_stale_cached_kek_is_evicted(self, vault: KeyVault) -> None:
        """A cached KEK that no longer opens the record is dropped."""
        created = vault.create("alice", ALICE_PASSPHRASE)
        # Same salt, re-wrapped under a KEK from another passphrase.
        foreign_kek = derive_kek_from_passphrase(BOB_PASSPHRASE, created.wrapped.kdf_salt, FAST_SCRYPT)
        foreign = wrap_dek(foreign_kek, created.dek_raw, created.wrapped.kdf_salt, FAST_SCRYPT)

        with pytest.raises(UnwrapError):
            vault.unlock_cached("alice", foreign)

        assert "alice" not in vault.cache

    def test_change_passphrase(self, vault: KeyVault) -> None:
        created = vault.create("alice", ALICE_PASSPHRASE)

        rotated = vault.change_passphrase("alice", created.dek_raw, BOB_PASSPHRASE)

        assert unwrap_dek(BOB_PASSPHRASE, rotated) == created.dek_raw
        assert vault.cache.get("alice").kdf_salt == rotated.kdf_salt
        assert vault.unlock_cached("alice", rotated) == created.dek_raw

    def test_lock(self, vault: KeyVault) -> None:
        created = vault.create("alice", ALICE_PASSPHRASE)
        vault.create("bob", BOB_PASSPHRASE)

        vault.lock("bob")
        assert "bob" not in vault.cache
        assert "alice" in vault.cache

        vault.lock()
        assert vault.unlock_cached("alice", created.wrapped) is None

    def test_shared_cache(self) -> None:
        cache = DerivedKekCache()
        first = KeyVault(cache=cache, kdf_params=FAST_SCRYPT)
        second = KeyVault(cache=cache, kdf_params=FAST_SCRYPT)

        created = first.create("alice", ALICE_PASSPHRASE)

        assert second.unlock_cached("alice", created.wrapped) == created.dek_raw

    def test_rewrap_helper_matches_vault(self) -> None:
        created = create_wrapped_dek(ALICE_PASSPHRASE, FAST_SCRYPT)
        rotated = rewrap_dek(created.dek_raw, BOB_PASSPHRASE, FAST_SCRYPT)

        vault = KeyVault(kdf_params=FAST_SCRYPT)
        assert vault.unlock("alice", BOB_PASSPHRASE, rotated.wrapped) == created.dek_raw
