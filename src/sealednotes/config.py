"""
Configuration for sealednotes.

Every setting has a default suitable for local development and can be
overridden through environment variables via `from_env()`.
"""

import os
from dataclasses import dataclass

from .models import KdfParams
from .types import (
    DEFAULT_HISTORY_MAX,
    DEFAULT_PBKDF2_ITERATIONS,
    DEFAULT_SCRYPT_N,
    DEFAULT_SCRYPT_P,
    DEFAULT_SCRYPT_R,
    KDF_SCRYPT,
)


@dataclass(frozen=True)
class KdfConfig:
    """Cost settings used when new vault keys are created."""

    algorithm: str = KDF_SCRYPT
    scrypt_n: int = DEFAULT_SCRYPT_N
    scrypt_r: int = DEFAULT_SCRYPT_R
    scrypt_p: int = DEFAULT_SCRYPT_P
    pbkdf2_iterations: int = DEFAULT_PBKDF2_ITERATIONS

    @classmethod
    def from_env(cls) -> "KdfConfig":
        return cls(
            algorithm=os.getenv("SEALEDNOTES_KDF_ALGORITHM", KDF_SCRYPT),
            scrypt_n=int(os.getenv("SEALEDNOTES_SCRYPT_N", str(DEFAULT_SCRYPT_N))),
            scrypt_r=int(os.getenv("SEALEDNOTES_SCRYPT_R", str(DEFAULT_SCRYPT_R))),
            scrypt_p=int(os.getenv("SEALEDNOTES_SCRYPT_P", str(DEFAULT_SCRYPT_P))),
            pbkdf2_iterations=int(
                os.getenv("SEALEDNOTES_PBKDF2_ITERATIONS", str(DEFAULT_PBKDF2_ITERATIONS))
            ),
        )

    def params(self) -> KdfParams:
        """KdfParams to record in newly wrapped keys."""
        params = KdfParams(
            algorithm=self.algorithm,
            n=self.scrypt_n,
            r=self.scrypt_r,
            p=self.scrypt_p,
            iterations=self.pbkdf2_iterations,
        )
        params.validate()
        return params


@dataclass(frozen=True)
class HistoryConfig:
    """Undo/redo history settings."""

    max_size: int = DEFAULT_HISTORY_MAX

    @classmethod
    def from_env(cls) -> "HistoryConfig":
        return cls(max_size=int(os.getenv("SEALEDNOTES_HISTORY_MAX", str(DEFAULT_HISTORY_MAX))))


@dataclass(frozen=True)
class StreamConfig:
    """Change stream polling settings."""

    interval: float = 1.5
    """Seconds between polls of the latest event id."""

    @classmethod
    def from_env(cls) -> "StreamConfig":
        return cls(interval=float(os.getenv("SEALEDNOTES_STREAM_INTERVAL", "1.5")))


@dataclass(frozen=True)
class RealtimeConfig:
    """Realtime publish service settings."""

    url: str = "http://127.0.0.1:8787"
    secret: str = "dev-realtime-secret"
    disabled: bool = False
    timeout: float = 2.0
    """Upper bound in seconds for one publish call."""

    @classmethod
    def from_env(cls) -> "RealtimeConfig":
        return cls(
            url=os.getenv("REALTIME_URL", "").strip() or "http://127.0.0.1:8787",
            secret=os.getenv("REALTIME_SECRET", "").strip() or "dev-realtime-secret",
            disabled=os.getenv("REALTIME_DISABLED", "").strip() == "1",
            timeout=float(os.getenv("REALTIME_TIMEOUT", "2.0")),
        )

    @classmethod
    def local(cls) -> "RealtimeConfig":
        """Configuration for a realtime service on localhost."""
        return cls()

    @classmethod
    def off(cls) -> "RealtimeConfig":
        """Configuration with publishing disabled."""
        return cls(disabled=True)
