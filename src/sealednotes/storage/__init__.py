"""sealednotes storage module."""

from .kek_cache import DerivedKekCache, DerivedKekCacheEntry
from .session_store import SessionStore, InMemorySessionStore, DEFAULT_SESSION_TTL

__all__ = [
    "DerivedKekCache",
    "DerivedKekCacheEntry",
    "SessionStore",
    "InMemorySessionStore",
    "DEFAULT_SESSION_TTL",
]
