"""
sealednotes - End-to-end encrypted notes core

Python implementation of the sealednotes key hierarchy (scrypt + AES-256-GCM),
undo/redo history, board ordering and change notification primitives.
"""

from .keys import DerivedKek, derive_kek_from_passphrase
from .crypto import (
    CreatedDek,
    create_wrapped_dek,
    unwrap_dek,
    unwrap_dek_with_kek,
    wrap_dek,
    rewrap_dek,
    encrypt_json,
    decrypt_json,
)
from .types import (
    SealedNotesError,
    KeyDerivationError,
    UnwrapError,
    InvalidKeyRecordError,
    EncryptionError,
    DecryptionError,
    SessionNotFoundError,
    NotificationDeliveryError,
    DEFAULT_HISTORY_MAX,
)
from .models import (
    NoteSnapshot,
    CreateAction,
    DeleteAction,
    UpdateAction,
    NotesAction,
    NotesEvent,
    NotesEventKind,
    KdfParams,
    WrappedDek,
    EncryptedPayload,
    BoardOrder,
    Session,
    SessionsChangedEvent,
)
from .storage import (
    DerivedKekCache,
    DerivedKekCacheEntry,
    SessionStore,
    InMemorySessionStore,
)
from .vault import KeyVault
from .history import (
    PopResult,
    Direction,
    push_undo,
    pop_last,
    invert,
    apply_action,
    NotesHistory,
    ReplayResult,
    apply_notes_events,
    decrypt_notes_events,
)
from .board_order import (
    to_unique_string_array,
    merge_note_order_ids,
    array_move,
    reconcile_board_order,
)
from .ticker import (
    HeartbeatPayload,
    ChangedPayload,
    TickResult,
    StreamTickState,
    tick,
    format_sse,
)
from .stream import NotesChangeStream
from .realtime import RealtimePublisher
from .notify import SessionNotifier, sessions_changed_event
from .config import (
    KdfConfig,
    HistoryConfig,
    StreamConfig,
    RealtimeConfig,
)

__version__ = "0.1.0"

__all__ = [
    # Keys
    "DerivedKek",
    "derive_kek_from_passphrase",
    # Crypto
    "CreatedDek",
    "create_wrapped_dek",
    "unwrap_dek",
    "unwrap_dek_with_kek",
    "wrap_dek",
    "rewrap_dek",
    "encrypt_json",
    "decrypt_json",
    # Models
    "NoteSnapshot",
    "CreateAction",
    "DeleteAction",
    "UpdateAction",
    "NotesAction",
    "NotesEvent",
    "NotesEventKind",
    "KdfParams",
    "WrappedDek",
    "EncryptedPayload",
    "BoardOrder",
    "Session",
    "SessionsChangedEvent",
    # Storage
    "DerivedKekCache",
    "DerivedKekCacheEntry",
    "SessionStore",
    "InMemorySessionStore",
    # Vault
    "KeyVault",
    # History
    "PopResult",
    "Direction",
    "push_undo",
    "pop_last",
    "invert",
    "apply_action",
    "NotesHistory",
    "ReplayResult",
    "apply_notes_events",
    "decrypt_notes_events",
    # Board order
    "to_unique_string_array",
    "merge_note_order_ids",
    "array_move",
    "reconcile_board_order",
    # Ticker
    "HeartbeatPayload",
    "ChangedPayload",
    "TickResult",
    "StreamTickState",
    "tick",
    "format_sse",
    "NotesChangeStream",
    # Notifier
    "RealtimePublisher",
    "SessionNotifier",
    "sessions_changed_event",
    # Config
    "KdfConfig",
    "HistoryConfig",
    "StreamConfig",
    "RealtimeConfig",
    # Errors
    "SealedNotesError",
    "KeyDerivationError",
    "UnwrapError",
    "InvalidKeyRecordError",
    "EncryptionError",
    "DecryptionError",
    "SessionNotFoundError",
    "NotificationDeliveryError",
    # Constants
    "DEFAULT_HISTORY_MAX",
]
