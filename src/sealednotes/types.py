"""Type definitions for sealednotes."""


# Key hierarchy constants
SALT_SIZE = 16
MIN_SALT_SIZE = 16
DEK_SIZE = 32
KEK_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16
WRAPPED_DEK_SIZE = DEK_SIZE + TAG_SIZE  # 32-byte key + 16-byte tag

# Associated data prefixes
WRAP_AAD_PREFIX = b"sealednotes-dek-v1"
PAYLOAD_AAD = b"sealednotes-note-v1"

# KDF defaults
KDF_SCRYPT = "scrypt"
KDF_PBKDF2_SHA256 = "pbkdf2-sha256"
DEFAULT_SCRYPT_N = 2**15
DEFAULT_SCRYPT_R = 8
DEFAULT_SCRYPT_P = 1
DEFAULT_PBKDF2_ITERATIONS = 210_000

# History constants
DEFAULT_HISTORY_MAX = 100

# Stream event names
EVENT_PING = "ping"
EVENT_NOTES_CHANGED = "notes:changed"
EVENT_HELLO = "hello"
EVENT_SESSIONS_CHANGED = "sessions:changed"


# Exception types
class SealedNotesError(Exception):
    """Base exception for sealednotes errors."""
    pass


class KeyDerivationError(SealedNotesError):
    """Key derivation failed (malformed salt or parameters)."""
    pass


class UnwrapError(SealedNotesError):
    """Unwrapping the data-encryption key failed."""

    def __init__(self) -> None:
        super().__init__("Unable to unlock vault")


class InvalidKeyRecordError(SealedNotesError):
    """Persisted wrapped-key record is malformed."""
    pass


class EncryptionError(SealedNotesError):
    """Encryption failed."""
    pass


class DecryptionError(SealedNotesError):
    """Decryption failed."""
    pass


class SessionNotFoundError(SealedNotesError):
    """Session not found in storage."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class NotificationDeliveryError(SealedNotesError):
    """Realtime event could not be delivered."""
    pass
