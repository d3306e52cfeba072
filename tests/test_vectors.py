"""Shared test data for sealednotes tests."""

from sealednotes.models import KdfParams, NoteSnapshot

# Cheap KDF settings so the suite stays fast
FAST_SCRYPT = KdfParams(n=2**10, r=8, p=1)
FAST_PBKDF2 = KdfParams(algorithm="pbkdf2-sha256", iterations=1_000)

ALICE_PASSPHRASE = "correct horse battery staple"
BOB_PASSPHRASE = "hunter2-but-longer"

FIXED_SALT = bytes(range(16))

# Passphrases covering encoding edge cases
TEST_PASSPHRASES = {
    "empty": "",
    "ascii": "passphrase",
    "whitespace": "  spaced out \t",
    "emoji": "vault 🔐 key",
    "accents": "Café résumé naïve",
    "cjk": "你好世界",
    "long": "x" * 1024,
}

NOTE_A = NoteSnapshot(id="a", title="Groceries", body="milk", created_at="2024-01-01T10:00:00Z")
NOTE_B = NoteSnapshot(id="b", title="Ideas", body="", created_at="2024-01-02T10:00:00Z")
NOTE_A_EDITED = NoteSnapshot(
    id="a", title="Groceries", body="milk, eggs", created_at="2024-01-01T10:00:00Z"
)
