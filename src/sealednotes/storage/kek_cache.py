"""In-memory cache of derived key-encryption keys."""

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional

from ..keys import DerivedKek


@dataclass
class DerivedKekCacheEntry:
    """A derived KEK and the salt it was derived with."""
    kdf_salt: bytes
    kek: DerivedKek = field(repr=False)
    cached_at: float = 0.0


ClearHook = Callable[[list[str]], None]


class DerivedKekCache:
    """
    Per-process cache of derived KEKs keyed by username.

    Entries live only in memory and have no expiry; callers clear the cache
    on logout or session switch. Access is guarded by a single lock, so two
    requests racing to populate the same user are safe (last writer wins).
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        on_clear: Optional[Iterable[ClearHook]] = None,
    ) -> None:
        self._entries: dict[str, DerivedKekCacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._on_clear: list[ClearHook] = list(on_clear or [])

    def get(self, username: str) -> Optional[DerivedKekCacheEntry]:
        """Return the cached entry for a user, if any."""
        with self._lock:
            return self._entries.get(username)

    def set(self, username: str, entry: DerivedKekCacheEntry) -> DerivedKekCacheEntry:
        """
        Store a copy of an entry for a user, stamped with the cache time.

        The caller's entry is left untouched; the stored copy is returned.
        """
        with self._lock:
            stored = replace(entry, cached_at=self._clock())
            self._entries[username] = stored
        return stored

    def put(self, username: str, kdf_salt: bytes, kek: DerivedKek) -> DerivedKekCacheEntry:
        """Build and store an entry in one call."""
        return self.set(username, DerivedKekCacheEntry(kdf_salt=bytes(kdf_salt), kek=kek))

    def clear(self, username: Optional[str] = None) -> None:
        """Clear one user's entry, or the whole cache when no user is given."""
        with self._lock:
            if username is None:
                cleared = list(self._entries.keys())
                self._entries.clear()
            elif self._entries.pop(username, None) is not None:
                cleared = [username]
            else:
                cleared = []

        if not cleared:
            return
        for hook in self._on_clear:
            hook(cleared)

    def add_clear_hook(self, hook: ClearHook) -> None:
        """Register a teardown hook run after each clear that removed entries."""
        self._on_clear.append(hook)

    def usernames(self) -> list[str]:
        with self._lock:
            return list(self._entries.keys())

    def __contains__(self, username: object) -> bool:
        with self._lock:
            return username in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
