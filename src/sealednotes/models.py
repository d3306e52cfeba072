"""Models for sealednotes notes, keys, sessions and stream state."""

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from .types import (
    DEFAULT_PBKDF2_ITERATIONS,
    DEFAULT_SCRYPT_N,
    DEFAULT_SCRYPT_P,
    DEFAULT_SCRYPT_R,
    EVENT_SESSIONS_CHANGED,
    KDF_PBKDF2_SHA256,
    KDF_SCRYPT,
    KEK_SIZE,
    InvalidKeyRecordError,
    KeyDerivationError,
)


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(value: Any, name: str) -> bytes:
    if not isinstance(value, str) or not value:
        raise InvalidKeyRecordError(f"Missing {name}")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidKeyRecordError(f"Invalid base64 in {name}") from e


# ============================================================================
# Notes
# ============================================================================


@dataclass(frozen=True)
class NoteSnapshot:
    """Immutable copy of a note captured into a history event."""
    id: str
    title: str
    body: str
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NoteSnapshot":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            body=str(data.get("body", "")),
            created_at=str(data["created_at"]),
        )


@dataclass(frozen=True)
class CreateAction:
    """A note was created."""
    kind: ClassVar[str] = "create"
    note: NoteSnapshot


@dataclass(frozen=True)
class DeleteAction:
    """A note was deleted."""
    kind: ClassVar[str] = "delete"
    note: NoteSnapshot


@dataclass(frozen=True)
class UpdateAction:
    """A note changed from `before` to `after`."""
    kind: ClassVar[str] = "update"
    before: NoteSnapshot
    after: NoteSnapshot


NotesAction = Union[CreateAction, DeleteAction, UpdateAction]


class NotesEventKind(Enum):
    """Kind of a persisted notes event."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    UNDO = "undo"
    REDO = "redo"


@dataclass
class NotesEvent:
    """
    One row of the persisted notes event log.

    `payload` is the encrypted note snapshot as stored (create and update
    rows). `note` is only present client-side, after the payload was
    decrypted. `target_event_id` is set for undo/redo events.
    """
    id: str
    created_at: str
    kind: NotesEventKind
    note_id: str
    target_event_id: Optional[str] = None
    payload: Optional["EncryptedPayload"] = None
    note: Optional[NoteSnapshot] = None


# ============================================================================
# Key hierarchy
# ============================================================================


@dataclass(frozen=True)
class KdfParams:
    """
    Parameters of the passphrase key-derivation function.

    Stored alongside the wrapped key so records created with older cost
    settings keep unlocking after the defaults change.
    """
    algorithm: str = KDF_SCRYPT
    n: int = DEFAULT_SCRYPT_N
    r: int = DEFAULT_SCRYPT_R
    p: int = DEFAULT_SCRYPT_P
    iterations: int = DEFAULT_PBKDF2_ITERATIONS
    length: int = KEK_SIZE

    def validate(self) -> None:
        """Raise KeyDerivationError if the parameters are unusable."""
        if self.length != KEK_SIZE:
            raise KeyDerivationError(f"KEK length must be {KEK_SIZE} bytes, got {self.length}")

        if self.algorithm == KDF_SCRYPT:
            if self.n < 2 or self.n & (self.n - 1) != 0:
                raise KeyDerivationError(f"scrypt n must be a power of two, got {self.n}")
            if self.r < 1 or self.p < 1:
                raise KeyDerivationError("scrypt r and p must be positive")
        elif self.algorithm == KDF_PBKDF2_SHA256:
            if self.iterations < 1:
                raise KeyDerivationError("PBKDF2 iterations must be positive")
        else:
            raise KeyDerivationError(f"Unknown KDF algorithm: {self.algorithm}")

    def to_dict(self) -> dict:
        if self.algorithm == KDF_PBKDF2_SHA256:
            return {
                "algorithm": self.algorithm,
                "iterations": self.iterations,
                "length": self.length,
            }
        return {
            "algorithm": self.algorithm,
            "n": self.n,
            "r": self.r,
            "p": self.p,
            "length": self.length,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "KdfParams":
        if not isinstance(data, dict):
            raise KeyDerivationError("KDF parameters must be a mapping")

        try:
            params = cls(
                algorithm=str(data.get("algorithm", KDF_SCRYPT)),
                n=int(data.get("n", DEFAULT_SCRYPT_N)),
                r=int(data.get("r", DEFAULT_SCRYPT_R)),
                p=int(data.get("p", DEFAULT_SCRYPT_P)),
                iterations=int(data.get("iterations", DEFAULT_PBKDF2_ITERATIONS)),
                length=int(data.get("length", KEK_SIZE)),
            )
        except (TypeError, ValueError) as e:
            raise KeyDerivationError("Invalid KDF parameters") from e

        params.validate()
        return params


@dataclass(frozen=True)
class WrappedDek:
    """
    Durable, server-storable form of a user's data-encryption key.

    The server can hold this record but cannot decrypt `wrapped_key`
    without the passphrase-derived KEK.
    """
    kdf_salt: bytes
    wrapped_key: bytes
    wrap_nonce: bytes
    kdf_params: KdfParams = field(default_factory=KdfParams)

    def to_dict(self) -> dict:
        """Persisted record with base64 byte fields."""
        return {
            "kdf_salt": _b64encode(self.kdf_salt),
            "wrapped_key": _b64encode(self.wrapped_key),
            "wrap_nonce": _b64encode(self.wrap_nonce),
            "kdf_params": self.kdf_params.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "WrappedDek":
        """
        Parse a persisted record.

        Raises:
            InvalidKeyRecordError: If a field is missing or not valid base64.
            KeyDerivationError: If the KDF parameters are invalid.
        """
        if not isinstance(data, dict):
            raise InvalidKeyRecordError("Key record must be a mapping")

        return cls(
            kdf_salt=_b64decode(data.get("kdf_salt"), "kdf_salt"),
            wrapped_key=_b64decode(data.get("wrapped_key"), "wrapped_key"),
            wrap_nonce=_b64decode(data.get("wrap_nonce"), "wrap_nonce"),
            kdf_params=KdfParams.from_dict(data.get("kdf_params", {})),
        )


@dataclass(frozen=True)
class EncryptedPayload:
    """AES-GCM encrypted JSON note payload."""
    payload_nonce: bytes
    payload_ciphertext: bytes

    def to_dict(self) -> dict:
        return {
            "payload_nonce": _b64encode(self.payload_nonce),
            "payload_ciphertext": _b64encode(self.payload_ciphertext),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EncryptedPayload":
        return cls(
            payload_nonce=_b64decode(data.get("payload_nonce"), "payload_nonce"),
            payload_ciphertext=_b64decode(data.get("payload_ciphertext"), "payload_ciphertext"),
        )


# ============================================================================
# Board order
# ============================================================================


@dataclass
class BoardOrder:
    """Manual ordering of the pinned and other sections of the notes board."""
    pinned: list[str] = field(default_factory=list)
    other: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"pinned": list(self.pinned), "other": list(self.other)}

    @classmethod
    def from_dict(cls, data: Any) -> "BoardOrder":
        """Coerce an untrusted stored value into a BoardOrder."""
        from .board_order import to_unique_string_array

        if not isinstance(data, dict):
            return cls()
        return cls(
            pinned=to_unique_string_array(data.get("pinned")),
            other=to_unique_string_array(data.get("other")),
        )


# ============================================================================
# Sessions
# ============================================================================


@dataclass
class Session:
    """An authenticated login session."""
    id: str
    username: str
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at <= (now or datetime.now())


@dataclass(frozen=True)
class SessionsChangedEvent:
    """Signal that the account's session list changed; consumers re-fetch."""
    type: str = EVENT_SESSIONS_CHANGED

    def to_dict(self) -> dict:
        return {"type": self.type}
